"""
AntibioStock Backend: Outflow Service
======================================

What:  Registers an outflow (salida): takes `units` from every antibiotic
       assigned to an antibiogram and logs it, all or nothing.
Who:   Called by POST /api/salidas.

Transaction (one per call):
    ┌───────────────────────────────────────────────────────────────┐
    │ BEGIN                                                         │
    │ 1. SELECT a.* FROM antibiograma_antibiotico aa                │
    │      JOIN antibioticos a ON a.codigo = aa.antibiotico_codigo  │
    │      WHERE aa.antibiograma_id = :id                           │
    │      ORDER BY a.codigo FOR UPDATE OF antibioticos             │
    │ 2. no rows            → ROLLBACK, NoAntibioticsAssignedError  │
    │ 3. any cantidad < n   → ROLLBACK, InsufficientStockError      │
    │ 4. UPDATE antibioticos SET cantidad = cantidad - n            │
    │      WHERE codigo IN (...locked codes...)                     │
    │    INSERT INTO salidas (antibiograma_id, unidades)            │
    │ COMMIT                                                        │
    └───────────────────────────────────────────────────────────────┘

The whole set is locked in a single statement before anything is checked.
Two outflows over overlapping sets therefore serialize on the shared rows
instead of both passing their checks and jointly overselling. Rows are
locked in code order; if PostgreSQL still detects a deadlock it aborts one
transaction, which surfaces here as DatabaseError. Nothing is retried.
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from antibiostock.exceptions import (
    AntibioStockError,
    DatabaseError,
    InsufficientStockError,
    NoAntibioticsAssignedError,
)
from antibiostock.models.inventory import Antibiotic, AntibiogramAntibiotic, Outflow
from antibiostock.schemas.inventory import OutflowOut
from antibiostock.services.validators import require_int

logger = logging.getLogger(__name__)


class OutflowService:
    """Stateless; every call receives the request's session."""

    async def register_outflow(
        self,
        db: AsyncSession,
        antibiogram_id: int,
        units: int,
    ) -> OutflowOut:
        """
        Decrement every antibiotic of an antibiogram by `units` and log it.

        Args:
            db: Async database session (no transaction open yet)
            antibiogram_id: Antibiogram identifier, integer > 0
            units: Units taken from each assigned antibiotic, integer > 0

        Returns:
            The inserted outflow record.

        Raises:
            ValidationError: either argument is not an integer > 0
            NoAntibioticsAssignedError: the antibiogram has no antibiotics
            InsufficientStockError: at least one antibiotic has fewer than
                `units`; context["insuficientes"] lists every such antibiotic
            DatabaseError: query failure, constraint violation or deadlock abort
        """
        require_int(antibiogram_id, "antibiograma_id", minimum=1)
        require_int(units, "unidades", minimum=1)

        try:
            async with db.begin():
                result = await db.execute(
                    select(Antibiotic)
                    .join(
                        AntibiogramAntibiotic,
                        AntibiogramAntibiotic.antibiotic_code == Antibiotic.code,
                    )
                    .where(AntibiogramAntibiotic.antibiogram_id == antibiogram_id)
                    .order_by(Antibiotic.code)
                    .with_for_update(of=Antibiotic)
                )
                antibiotics = list(result.scalars().all())

                if not antibiotics:
                    raise NoAntibioticsAssignedError(antibiogram_id)

                shortfalls = [
                    {
                        "codigo": a.code,
                        "nombre": a.name,
                        "cantidad": a.quantity,
                        "pedir": units,
                    }
                    for a in antibiotics
                    if a.quantity - units < 0
                ]
                if shortfalls:
                    raise InsufficientStockError.for_outflow(shortfalls)

                remaining = {a.code: a.quantity - units for a in antibiotics}

                await db.execute(
                    update(Antibiotic)
                    .where(Antibiotic.code.in_(list(remaining)))
                    .values({Antibiotic.quantity: Antibiotic.quantity - units})
                )

                outflow = Outflow(antibiogram_id=antibiogram_id, units=units)
                db.add(outflow)
                await db.flush()
                record = OutflowOut(
                    id=outflow.id,
                    created_at=outflow.created_at,
                    antibiogram_id=outflow.antibiogram_id,
                    units=outflow.units,
                )
        except AntibioStockError:
            raise
        except Exception as e:
            logger.error(
                "Outflow for antibiogram %s failed: %s", antibiogram_id, str(e), exc_info=True
            )
            raise DatabaseError(
                message="Could not register the outflow.",
                context={"cause": str(e), "antibiograma_id": antibiogram_id},
            ) from e

        logger.info(
            "Outflow %d registered: antibiogram %d, %d units from %d antibiotics",
            record.id,
            antibiogram_id,
            units,
            len(remaining),
        )
        for a in antibiotics:
            if remaining[a.code] <= a.threshold:
                logger.warning(
                    "Low stock: %s (%s) has %d units, minimum is %d",
                    a.code,
                    a.name,
                    remaining[a.code],
                    a.threshold,
                )
        return record


# ── Singleton Instance ────────────────────────────────────────────────────
outflow_service = OutflowService()
