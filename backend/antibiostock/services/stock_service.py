"""
AntibioStock Backend: Stock Service
====================================

What:  Reads and mutates antibiotic stock levels.
How:   Each mutation runs in its own explicit transaction on the request's
       session; the target row is locked before it is checked.
Who:   Called by the /api/antibioticos and /api/alerts route handlers.

Subtraction flow (POST /api/antibioticos/{codigo}/restar):
    BEGIN
      SELECT ... FROM antibioticos WHERE codigo = :code FOR UPDATE
      ├── no row            → ROLLBACK, NotFoundError (404)
      ├── cantidad < n      → ROLLBACK, InsufficientStockError (409)
      └── UPDATE ... SET cantidad = cantidad - n RETURNING ...
    COMMIT

    The row lock makes concurrent subtractions on the same code queue up
    behind each other, so the check and the write always see the same
    quantity.
"""

import logging
from typing import List

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from antibiostock.exceptions import (
    AntibioStockError,
    DatabaseError,
    InsufficientStockError,
    NotFoundError,
)
from antibiostock.models.inventory import Antibiotic
from antibiostock.schemas.inventory import AntibioticOut, LowStockResponse
from antibiostock.services.validators import require_int

logger = logging.getLogger(__name__)


def to_antibiotic_out(antibiotic: Antibiotic) -> AntibioticOut:
    return AntibioticOut(
        code=antibiotic.code,
        name=antibiotic.name,
        quantity=antibiotic.quantity,
        threshold=antibiotic.threshold,
    )


def log_if_low_stock(antibiotic: Antibiotic) -> None:
    if antibiotic.is_low_stock:
        logger.warning(
            "Low stock: %s (%s) has %d units, minimum is %d",
            antibiotic.code,
            antibiotic.name,
            antibiotic.quantity,
            antibiotic.threshold,
        )


class StockService:
    """
    Business logic for single-antibiotic stock operations.

    Responsibilities:
        - list_antibiotics(): every antibiotic, by name
        - list_low_stock(): antibiotics at or below their minimum
        - set_stock(): absolute update of quantity and minimum
        - subtract_stock(): locked, checked decrement

    Error Handling Strategy:
        Application exceptions propagate unchanged after the transaction
        context manager has rolled back. Anything else is logged and wrapped
        in DatabaseError carrying the underlying message.
    """

    async def list_antibiotics(self, db: AsyncSession) -> List[AntibioticOut]:
        try:
            result = await db.execute(select(Antibiotic).order_by(Antibiotic.name))
            return [to_antibiotic_out(a) for a in result.scalars().all()]
        except Exception as e:
            logger.error("Database error listing antibiotics: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve antibiotics.",
                context={"cause": str(e)},
            ) from e

    async def list_low_stock(self, db: AsyncSession) -> LowStockResponse:
        """
        Antibiotics whose quantity is at or below their minimum.

        Query plan:
            SELECT ... FROM antibioticos WHERE cantidad <= stock_minimo
            ORDER BY (cantidad - stock_minimo) ASC, nombre ASC
        """
        try:
            result = await db.execute(
                select(Antibiotic)
                .where(Antibiotic.quantity <= Antibiotic.threshold)
                .order_by(
                    (Antibiotic.quantity - Antibiotic.threshold).asc(),
                    Antibiotic.name.asc(),
                )
            )
            items = [to_antibiotic_out(a) for a in result.scalars().all()]
        except Exception as e:
            logger.error("Low-stock query failed: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="low-stock query failed",
                context={"cause": str(e)},
            ) from e

        return LowStockResponse(count=len(items), items=items)

    async def set_stock(
        self,
        db: AsyncSession,
        code: str,
        quantity: int,
        threshold: int,
    ) -> AntibioticOut:
        """
        Overwrite an antibiotic's quantity and minimum stock.

        Args:
            db: Async database session
            code: Antibiotic code (path parameter)
            quantity: New quantity, integer >= 0
            threshold: New minimum stock, integer >= 0

        Returns:
            The row produced by the UPDATE statement.

        Raises:
            ValidationError: quantity or threshold is not a non-negative integer
            NotFoundError: no antibiotic with that code
            DatabaseError: query execution failed
        """
        require_int(quantity, "cantidad", minimum=0)
        require_int(threshold, "stock_minimo", minimum=0)
        code = str(code)

        try:
            async with db.begin():
                result = await db.execute(
                    update(Antibiotic)
                    .where(Antibiotic.code == code)
                    .values({Antibiotic.quantity: quantity, Antibiotic.threshold: threshold})
                    .returning(Antibiotic)
                    .execution_options(populate_existing=True)
                )
                antibiotic = result.scalar_one_or_none()
                if antibiotic is None:
                    raise NotFoundError(resource="antibiotic", resource_id=code)
        except AntibioStockError:
            raise
        except Exception as e:
            logger.error("Database error updating stock of %s: %s", code, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the antibiotic stock.",
                context={"cause": str(e), "codigo": code},
            ) from e

        logger.info(
            "Stock of %s set to %d (minimum %d)",
            antibiotic.code,
            antibiotic.quantity,
            antibiotic.threshold,
        )
        log_if_low_stock(antibiotic)
        return to_antibiotic_out(antibiotic)

    async def subtract_stock(
        self,
        db: AsyncSession,
        code: str,
        quantity: int,
    ) -> AntibioticOut:
        """
        Decrement one antibiotic by `quantity`, or fail with no effect.

        Workflow Steps:
            1. Validate quantity (positive integer) before touching the DB
            2. Lock the antibiotic row (SELECT ... FOR UPDATE)
            3. Reject missing rows and insufficient stock (rolls back)
            4. UPDATE ... RETURNING and commit

        Returns:
            The updated row as returned by the UPDATE statement.

        Raises:
            ValidationError: quantity is not an integer > 0
            NotFoundError: no antibiotic with that code
            InsufficientStockError: stock < quantity; context carries the
                available amount under "cantidad"
            DatabaseError: query execution failed
        """
        require_int(quantity, "cantidad", minimum=1)
        code = str(code)

        try:
            async with db.begin():
                result = await db.execute(
                    select(Antibiotic).where(Antibiotic.code == code).with_for_update()
                )
                antibiotic = result.scalar_one_or_none()

                if antibiotic is None:
                    raise NotFoundError(resource="antibiotic", resource_id=code)

                if antibiotic.quantity < quantity:
                    raise InsufficientStockError.for_antibiotic(
                        code=code,
                        available=antibiotic.quantity,
                        requested=quantity,
                    )

                result = await db.execute(
                    update(Antibiotic)
                    .where(Antibiotic.code == code)
                    .values({Antibiotic.quantity: Antibiotic.quantity - quantity})
                    .returning(Antibiotic)
                    .execution_options(populate_existing=True)
                )
                updated = result.scalar_one()
        except AntibioStockError:
            raise
        except Exception as e:
            logger.error("Database error subtracting stock of %s: %s", code, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not subtract stock.",
                context={"cause": str(e), "codigo": code},
            ) from e

        logger.info("Subtracted %d units of %s, %d left", quantity, code, updated.quantity)
        log_if_low_stock(updated)
        return to_antibiotic_out(updated)


# ── Singleton Instance ────────────────────────────────────────────────────
stock_service = StockService()
