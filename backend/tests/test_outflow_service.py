"""
AntibioStock Backend: Outflow Service Tests
============================================

What:  Tests for OutflowService.register_outflow.
How:   Runs against the seeded SQLite database: antibiogram 3 holds
       AMX (10) and CIP (3); antibiogram 4 holds nothing.

What we test:
    ✅ A successful outflow decrements every assigned antibiotic and logs one row
    ✅ One short antibiotic aborts the whole outflow; every short one is reported
    ✅ Antibiograms without antibiotics are a validation error
    ✅ The assigned rows are locked (FOR UPDATE OF antibioticos) in code order
    ✅ A failure after the stock UPDATE rolls the decrement back
    ✅ Invalid arguments are rejected before any query
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from antibiostock.exceptions import (
    DatabaseError,
    InsufficientStockError,
    NoAntibioticsAssignedError,
    ValidationError,
)
from antibiostock.models.inventory import Antibiotic
from antibiostock.services.outflow_service import OutflowService

from conftest import count_outflows, postgres_sql, read_outflows, read_quantities


class TestRegisterOutflow:

    def setup_method(self):
        self.service = OutflowService()

    @pytest.mark.asyncio
    async def test_outflow_decrements_every_antibiotic(self, seeded):
        async with seeded() as db:
            record = await self.service.register_outflow(db, antibiogram_id=3, units=2)

        assert record.antibiogram_id == 3
        assert record.units == 2
        assert record.created_at is not None

        quantities = await read_quantities(seeded)
        assert quantities["AMX"] == 8
        assert quantities["CIP"] == 1
        # Antibiotics outside the antibiogram are untouched
        assert quantities["GEN"] == 2

        outflows = await read_outflows(seeded)
        assert len(outflows) == 1
        assert outflows[0].id == record.id
        assert (outflows[0].antibiogram_id, outflows[0].units) == (3, 2)

    @pytest.mark.asyncio
    async def test_outflow_can_empty_the_scarcest_antibiotic(self, seeded):
        async with seeded() as db:
            await self.service.register_outflow(db, antibiogram_id=3, units=3)

        quantities = await read_quantities(seeded)
        assert (quantities["AMX"], quantities["CIP"]) == (7, 0)

    @pytest.mark.asyncio
    async def test_insufficient_stock_changes_nothing(self, seeded):
        async with seeded() as db:
            with pytest.raises(InsufficientStockError) as exc_info:
                await self.service.register_outflow(db, antibiogram_id=3, units=5)

        assert exc_info.value.context["insuficientes"] == [
            {"codigo": "CIP", "nombre": "Ciprofloxacino", "cantidad": 3, "pedir": 5},
        ]
        quantities = await read_quantities(seeded)
        assert (quantities["AMX"], quantities["CIP"]) == (10, 3)
        assert await count_outflows(seeded) == 0

    @pytest.mark.asyncio
    async def test_every_short_antibiotic_is_reported(self, seeded):
        async with seeded() as db:
            with pytest.raises(InsufficientStockError) as exc_info:
                await self.service.register_outflow(db, antibiogram_id=3, units=11)

        short = exc_info.value.context["insuficientes"]
        assert [s["codigo"] for s in short] == ["AMX", "CIP"]
        assert [s["cantidad"] for s in short] == [10, 3]

    @pytest.mark.asyncio
    async def test_second_outflow_fails_once_stock_runs_out(self, seeded):
        async with seeded() as db:
            await self.service.register_outflow(db, antibiogram_id=3, units=2)
        async with seeded() as db:
            with pytest.raises(InsufficientStockError):
                await self.service.register_outflow(db, antibiogram_id=3, units=2)

        quantities = await read_quantities(seeded)
        assert (quantities["AMX"], quantities["CIP"]) == (8, 1)
        assert await count_outflows(seeded) == 1

    @pytest.mark.asyncio
    async def test_antibiogram_without_antibiotics(self, seeded):
        async with seeded() as db:
            with pytest.raises(NoAntibioticsAssignedError) as exc_info:
                await self.service.register_outflow(db, antibiogram_id=4, units=1)

        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.message == "Ese antibiograma no tiene antibióticos asignados"
        assert await count_outflows(seeded) == 0

    @pytest.mark.asyncio
    async def test_unknown_antibiogram_has_no_antibiotics(self, seeded):
        async with seeded() as db:
            with pytest.raises(NoAntibioticsAssignedError):
                await self.service.register_outflow(db, antibiogram_id=99, units=1)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "antibiogram_id, units, field",
        [
            (0, 1, "antibiograma_id"),
            (-3, 1, "antibiograma_id"),
            ("3", 1, "antibiograma_id"),
            (3, 0, "unidades"),
            (3, 2.5, "unidades"),
            (3, False, "unidades"),
        ],
    )
    async def test_invalid_arguments_rejected_before_any_query(
        self, mock_db_session, antibiogram_id, units, field
    ):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.register_outflow(mock_db_session, antibiogram_id, units)

        assert exc_info.value.field == field
        mock_db_session.begin.assert_not_called()
        mock_db_session.execute.assert_not_awaited()


class TestOutflowTransaction:

    def setup_method(self):
        self.service = OutflowService()

    @pytest.mark.asyncio
    async def test_assigned_antibiotics_locked_in_code_order(self, recording_session):
        locked = MagicMock()
        locked.scalars.return_value.all.return_value = [
            Antibiotic(code="AMX", name="Amoxicilina", quantity=10, threshold=5),
            Antibiotic(code="CIP", name="Ciprofloxacino", quantity=1, threshold=2),
        ]
        recording_session.execute = AsyncMock(return_value=locked)

        with pytest.raises(InsufficientStockError):
            await self.service.register_outflow(recording_session, antibiogram_id=3, units=2)

        statements = postgres_sql(recording_session)
        assert len(statements) == 1
        assert "ORDER BY antibioticos.codigo" in statements[0]
        assert statements[0].rstrip().endswith("FOR UPDATE OF antibioticos")

    @pytest.mark.asyncio
    async def test_failed_log_insert_rolls_back_stock(self, seeded):
        """The UPDATE has already run when the salidas insert fails."""
        async with seeded() as db:
            with patch.object(db, "flush", AsyncMock(side_effect=RuntimeError("disk full"))):
                with pytest.raises(DatabaseError) as exc_info:
                    await self.service.register_outflow(db, antibiogram_id=3, units=2)

        assert exc_info.value.context["cause"] == "disk full"
        quantities = await read_quantities(seeded)
        assert (quantities["AMX"], quantities["CIP"]) == (10, 3)
        assert await count_outflows(seeded) == 0
