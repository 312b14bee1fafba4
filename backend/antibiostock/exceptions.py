"""
AntibioStock Backend: Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for each error kind the API reports.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the matching HTTP status.
Who:   Raised by services; caught by global handlers.
When:  During request processing, always after any open transaction has
       been rolled back.

Exception Hierarchy:
    AntibioStockError (base)
    ├── ValidationError                → 400 Bad Request
    │   └── NoAntibioticsAssignedError → 400 Bad Request
    ├── NotFoundError                  → 404 Not Found
    ├── InsufficientStockError         → 409 Conflict
    └── DatabaseError                  → 500 Internal Server Error
"""

from typing import Any, Dict, List, Optional


class AntibioStockError(Exception):
    """
    Base exception for all AntibioStock application errors.

    Attributes:
        message:  User-facing error description (returned in the API response)
        context:  Structured details about the failure
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(AntibioStockError):
    """
    Raised when client input fails validation.

    When:    Non-integer or non-positive quantities, malformed identifiers.
    HTTP:    400 Bad Request

    Services raise this before touching the database, so a rejected request
    never opens a transaction.

    Example response:
        {
            "error": "validation_error",
            "message": "cantidad must be an integer greater than 0",
            "details": {"field": "cantidad", "value": -3}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NoAntibioticsAssignedError(ValidationError):
    """Raised when an outflow targets an antibiogram with no antibiotics linked."""

    def __init__(self, antibiogram_id: int):
        super().__init__(
            message="Ese antibiograma no tiene antibióticos asignados",
            field="antibiograma_id",
            context={"antibiograma_id": antibiogram_id},
        )
        self.antibiogram_id = antibiogram_id


class NotFoundError(AntibioStockError):
    """
    Raised when a requested resource does not exist.

    When:    PUT or subtract against an unknown antibiotic code.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class InsufficientStockError(AntibioStockError):
    """
    Raised when a decrement would drive any antibiotic below zero.

    HTTP:    409 Conflict

    Two payload shapes share this class:
        single antibiotic:  {"codigo": "AMX", "cantidad": 10, "pedir": 12}
        outflow:            {"insuficientes": [{"codigo", "nombre", "cantidad", "pedir"}, ...]}
    """

    def __init__(
        self,
        message: str = "Stock insuficiente",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

    @classmethod
    def for_antibiotic(cls, code: str, available: int, requested: int) -> "InsufficientStockError":
        return cls(
            message=f"Stock insuficiente. Hay {available} y quieres restar {requested}.",
            context={"codigo": code, "cantidad": available, "pedir": requested},
        )

    @classmethod
    def for_outflow(cls, shortfalls: List[Dict[str, Any]]) -> "InsufficientStockError":
        return cls(
            message="Stock insuficiente para registrar la salida.",
            context={"insuficientes": shortfalls},
        )


class DatabaseError(AntibioStockError):
    """
    Raised when database operations fail unexpectedly.

    When:    Connection lost mid-query, constraint violation, deadlock abort.
    HTTP:    500 Internal Server Error

    A deadlock victim surfaces here as well; the caller retries by sending
    a fresh request.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
