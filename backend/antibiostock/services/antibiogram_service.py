"""
AntibioStock Backend: Antibiogram Service
==========================================

What:  Antibiogram listings and the antibiogram → antibiotic assignment.
Who:   Called by the /api/antibiogramas route handlers.

Assignment is replace-all: the previous set is deleted and the new one
inserted in one transaction, so readers see either the old set or the new
one. Inserts use ON CONFLICT DO NOTHING, which makes repeated codes in the
input harmless.
"""

import logging
from typing import Any, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from antibiostock.exceptions import AntibioStockError, DatabaseError
from antibiostock.models.inventory import Antibiogram, AntibiogramAntibiotic, Antibiotic
from antibiostock.schemas.inventory import AntibiogramOut, AntibioticOut
from antibiostock.services.stock_service import to_antibiotic_out
from antibiostock.services.validators import require_int

logger = logging.getLogger(__name__)


def _insert_ignoring_duplicates(db: AsyncSession):
    """INSERT ... ON CONFLICT DO NOTHING for the session's dialect (PostgreSQL, or SQLite in tests)."""
    insert = sqlite_insert if db.bind.dialect.name == "sqlite" else pg_insert
    return insert(AntibiogramAntibiotic).on_conflict_do_nothing()


class AntibiogramService:
    """
    Business logic for antibiograms and their assigned antibiotics.

    Responsibilities:
        - list_antibiograms(): every antibiogram, by name
        - list_antibiotic_codes(): assigned codes only
        - list_antibiotic_details(): assigned antibiotics with stock data
        - replace_antibiotics(): atomic replace-all of the assignment
    """

    async def list_antibiograms(self, db: AsyncSession) -> List[AntibiogramOut]:
        try:
            result = await db.execute(select(Antibiogram).order_by(Antibiogram.name))
            return [AntibiogramOut(id=a.id, name=a.name) for a in result.scalars().all()]
        except Exception as e:
            logger.error("Database error listing antibiograms: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve antibiograms.",
                context={"cause": str(e)},
            ) from e

    async def list_antibiotic_codes(self, db: AsyncSession, antibiogram_id: int) -> List[str]:
        require_int(antibiogram_id, "id")
        try:
            result = await db.execute(
                select(AntibiogramAntibiotic.antibiotic_code)
                .where(AntibiogramAntibiotic.antibiogram_id == antibiogram_id)
                .order_by(AntibiogramAntibiotic.antibiotic_code)
            )
            return list(result.scalars().all())
        except Exception as e:
            logger.error(
                "Database error listing codes of antibiogram %s: %s", antibiogram_id, str(e)
            )
            raise DatabaseError(
                message="Could not retrieve the antibiogram's antibiotics.",
                context={"cause": str(e), "antibiograma_id": antibiogram_id},
            ) from e

    async def list_antibiotic_details(
        self, db: AsyncSession, antibiogram_id: int
    ) -> List[AntibioticOut]:
        """
        Full antibiotic records assigned to one antibiogram, ordered by name.

        Query plan:
            SELECT a.* FROM antibiograma_antibiotico aa
            JOIN antibioticos a ON a.codigo = aa.antibiotico_codigo
            WHERE aa.antibiograma_id = :id ORDER BY a.nombre
        """
        require_int(antibiogram_id, "id")
        try:
            result = await db.execute(
                select(Antibiotic)
                .join(
                    AntibiogramAntibiotic,
                    AntibiogramAntibiotic.antibiotic_code == Antibiotic.code,
                )
                .where(AntibiogramAntibiotic.antibiogram_id == antibiogram_id)
                .order_by(Antibiotic.name)
            )
            return [to_antibiotic_out(a) for a in result.scalars().all()]
        except Exception as e:
            logger.error(
                "Database error listing details of antibiogram %s: %s", antibiogram_id, str(e)
            )
            raise DatabaseError(
                message="Could not retrieve the antibiogram's antibiotics.",
                context={"cause": str(e), "antibiograma_id": antibiogram_id},
            ) from e

    async def replace_antibiotics(
        self,
        db: AsyncSession,
        antibiogram_id: int,
        codes: Optional[List[Any]],
    ) -> int:
        """
        Replace the full set of antibiotics assigned to an antibiogram.

        Args:
            db: Async database session (no transaction open yet)
            antibiogram_id: Antibiogram identifier
            codes: New codes. None or [] clears the assignment. Falsy
                entries are skipped; others are stored as str(code).

        Returns:
            len(codes): the number of codes supplied, not the number of
            rows inserted.

        Raises:
            ValidationError: antibiogram_id is not an integer
            DatabaseError: any failure inside the transaction (e.g. unknown
                antibiotic code violating the foreign key)
        """
        require_int(antibiogram_id, "id")
        codes = list(codes or [])

        try:
            async with db.begin():
                await db.execute(
                    delete(AntibiogramAntibiotic).where(
                        AntibiogramAntibiotic.antibiogram_id == antibiogram_id
                    )
                )
                for code in codes:
                    if not code:
                        continue
                    await db.execute(
                        _insert_ignoring_duplicates(db).values(
                            {
                                AntibiogramAntibiotic.antibiogram_id: antibiogram_id,
                                AntibiogramAntibiotic.antibiotic_code: str(code),
                            }
                        )
                    )
        except AntibioStockError:
            raise
        except Exception as e:
            logger.error(
                "Replacing antibiotics of antibiogram %s failed: %s",
                antibiogram_id,
                str(e),
                exc_info=True,
            )
            raise DatabaseError(
                message="Could not update the antibiogram's antibiotics.",
                context={"cause": str(e), "antibiograma_id": antibiogram_id},
            ) from e

        logger.info("Antibiogram %d now has %d codes assigned", antibiogram_id, len(codes))
        return len(codes)


# ── Singleton Instance ────────────────────────────────────────────────────
antibiogram_service = AntibiogramService()
