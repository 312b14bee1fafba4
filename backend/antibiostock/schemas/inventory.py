"""
AntibioStock Backend: Pydantic Request/Response Schemas
========================================================

What:  Pydantic models defining the API contract between frontend and backend.
How:   FastAPI uses these models to validate request bodies, serialize responses,
       and generate Swagger/OpenAPI documentation automatically.
Who:   Used by route handlers as return types and by services to build results.

Field naming:
    Attributes are English; the JSON keys are the Spanish names the existing
    frontend reads and writes (codigo, nombre, cantidad, stock_minimo, ...).
    Response models declare them with `alias` + `populate_by_name`, so code
    builds them by attribute name and FastAPI serializes them by alias.
    Request models accept both spellings through AliasChoices.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class AntibioticOut(BaseModel):
    """One stocked antibiotic as shown in lists, details and mutation results."""

    code: str = Field(alias="codigo", description="Unique antibiotic code")
    name: str = Field(alias="nombre", description="Display name")
    quantity: int = Field(alias="cantidad", description="Units currently in stock")
    threshold: int = Field(alias="stock_minimo", description="Minimum stock before alerting")

    model_config = {"populate_by_name": True, "from_attributes": True}


class AntibiogramOut(BaseModel):
    id: int = Field(description="Antibiogram identifier")
    name: str = Field(alias="nombre", description="Display name")

    model_config = {"populate_by_name": True, "from_attributes": True}


class OutflowOut(BaseModel):
    """A registered outflow (salida) log entry."""

    id: int
    created_at: datetime = Field(description="When the outflow was registered (UTC)")
    antibiogram_id: int = Field(alias="antibiograma_id")
    units: int = Field(alias="unidades", description="Units taken from every antibiotic")

    model_config = {"populate_by_name": True, "from_attributes": True}


class ItemResponse(BaseModel):
    """Returned by the PUT and subtract endpoints: the row as it is after the update."""

    ok: bool = True
    item: AntibioticOut


class LowStockResponse(BaseModel):
    """
    Low-stock alert view.

    Items are ordered by (cantidad - stock_minimo) ascending, then by name,
    so the antibiotics furthest below their minimum come first.
    """

    ok: bool = True
    count: int = Field(description="Number of antibiotics at or below their minimum")
    items: List[AntibioticOut]


class AssignResponse(BaseModel):
    ok: bool = True
    count: int = Field(description="Number of codes supplied in the request")


class OutflowResponse(BaseModel):
    ok: bool = True
    salida: OutflowOut


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════
# Integer fields are strict: JSON true, "5" and 1.0 are rejected, not coerced.


class StockUpdateRequest(BaseModel):
    """Absolute stock levels for PUT /api/antibioticos/{codigo}."""

    quantity: int = Field(
        ge=0,
        strict=True,
        validation_alias=AliasChoices("cantidad", "quantity"),
        description="New quantity in stock (integer >= 0)",
    )
    threshold: int = Field(
        ge=0,
        strict=True,
        validation_alias=AliasChoices("stock_minimo", "threshold"),
        description="New minimum stock (integer >= 0)",
    )


class StockSubtractRequest(BaseModel):
    quantity: int = Field(
        gt=0,
        strict=True,
        validation_alias=AliasChoices("cantidad", "quantity"),
        description="Units to subtract (integer > 0)",
    )


class OutflowRequest(BaseModel):
    antibiogram_id: int = Field(
        gt=0,
        strict=True,
        validation_alias=AliasChoices("antibiograma_id", "antibiogram_id"),
    )
    units: int = Field(
        gt=0,
        strict=True,
        validation_alias=AliasChoices("unidades", "units"),
        description="Units taken from every antibiotic of the antibiogram",
    )


class AssignAntibioticsRequest(BaseModel):
    """
    Full replacement set of antibiotic codes for an antibiogram.

    Missing or null `codes` means an empty set. Falsy entries are skipped
    and non-string entries are stored by their string form.
    """

    codes: Optional[List[Any]] = Field(default=None, description="Antibiotic codes")


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example (409 from the subtract endpoint):
        {
            "error": "insufficient_stock",
            "message": "Stock insuficiente. Hay 10 y quieres restar 12.",
            "details": {"codigo": "AMX", "cantidad": 10, "pedir": 12},
            "request_id": "3f2a9c1e"
        }

    409 bodies also repeat the details keys at the top level
    (`insuficientes` for an outflow conflict).
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")


class DbCheckResponse(BaseModel):
    ok: bool
    db: bool
