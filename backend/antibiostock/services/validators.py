"""
Argument checks shared by the services.

They run before any query is issued, so a rejected call never opens a
transaction or borrows a connection.
"""

from typing import Any

from antibiostock.exceptions import ValidationError


def require_int(value: Any, field: str, minimum: int = 0) -> int:
    """
    Return `value` if it is an integer >= `minimum`, else raise ValidationError.

    bool is rejected even though it subclasses int.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            message=f"{field} debe ser un entero",
            field=field,
            context={"value": repr(value)},
        )
    if value < minimum:
        comparison = "> 0" if minimum == 1 else f">= {minimum}"
        raise ValidationError(
            message=f"{field} debe ser entero {comparison}",
            field=field,
            context={"value": value},
        )
    return value
