"""
AntibioStock Backend: Antibiogram Service Tests
================================================

What:  Tests for antibiogram listings and replace-all assignment.

What we test:
    ✅ Listings are ordered (antibiograms and details by name, codes by code)
    ✅ Replacement swaps the whole set and leaves other antibiograms alone
    ✅ Empty or missing code lists clear the assignment
    ✅ Falsy and repeated codes are tolerated; count is the number supplied
"""

import pytest
from unittest.mock import AsyncMock

from antibiostock.exceptions import DatabaseError, ValidationError
from antibiostock.services.antibiogram_service import AntibiogramService

from conftest import read_assigned_codes


class TestAntibiogramListings:

    def setup_method(self):
        self.service = AntibiogramService()

    @pytest.mark.asyncio
    async def test_list_antibiograms_by_name(self, seeded):
        async with seeded() as db:
            items = await self.service.list_antibiograms(db)

        assert [(a.id, a.name) for a in items] == [(4, "Hemocultivo"), (3, "Urocultivo")]

    @pytest.mark.asyncio
    async def test_list_codes(self, seeded):
        async with seeded() as db:
            assert await self.service.list_antibiotic_codes(db, 3) == ["AMX", "CIP"]

    @pytest.mark.asyncio
    async def test_list_codes_of_empty_or_unknown_antibiogram(self, seeded):
        async with seeded() as db:
            assert await self.service.list_antibiotic_codes(db, 4) == []
        async with seeded() as db:
            assert await self.service.list_antibiotic_codes(db, 99) == []

    @pytest.mark.asyncio
    async def test_list_details_carries_stock_data(self, seeded):
        async with seeded() as db:
            items = await self.service.list_antibiotic_details(db, 3)

        assert [(a.code, a.name, a.quantity, a.threshold) for a in items] == [
            ("AMX", "Amoxicilina", 10, 5),
            ("CIP", "Ciprofloxacino", 3, 2),
        ]

    @pytest.mark.asyncio
    async def test_non_integer_id_rejected(self, mock_db_session):
        with pytest.raises(ValidationError):
            await self.service.list_antibiotic_codes(mock_db_session, "3")
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_driver_error_wrapped(self, mock_db_session):
        mock_db_session.execute = AsyncMock(side_effect=OSError("server closed the connection"))

        with pytest.raises(DatabaseError) as exc_info:
            await self.service.list_antibiograms(mock_db_session)

        assert exc_info.value.context["cause"] == "server closed the connection"


class TestReplaceAntibiotics:

    def setup_method(self):
        self.service = AntibiogramService()

    @pytest.mark.asyncio
    async def test_replace_swaps_whole_set(self, seeded):
        async with seeded() as db:
            count = await self.service.replace_antibiotics(db, 3, ["GEN", "AMX"])

        assert count == 2
        assert await read_assigned_codes(seeded, 3) == ["AMX", "GEN"]

    @pytest.mark.asyncio
    async def test_replace_leaves_other_antibiograms_alone(self, seeded):
        async with seeded() as db:
            await self.service.replace_antibiotics(db, 4, ["VAN"])

        assert await read_assigned_codes(seeded, 4) == ["VAN"]
        assert await read_assigned_codes(seeded, 3) == ["AMX", "CIP"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("codes", [[], None])
    async def test_empty_or_missing_codes_clear_assignment(self, seeded, codes):
        async with seeded() as db:
            count = await self.service.replace_antibiotics(db, 3, codes)

        assert count == 0
        assert await read_assigned_codes(seeded, 3) == []

    @pytest.mark.asyncio
    async def test_falsy_and_repeated_codes(self, seeded):
        """Count reports the codes supplied, not the rows stored."""
        async with seeded() as db:
            count = await self.service.replace_antibiotics(db, 3, ["GEN", "", None, "GEN"])

        assert count == 4
        assert await read_assigned_codes(seeded, 3) == ["GEN"]

    @pytest.mark.asyncio
    async def test_assignment_then_details(self, seeded):
        async with seeded() as db:
            await self.service.replace_antibiotics(db, 4, ["VAN", "AZI"])
        async with seeded() as db:
            items = await self.service.list_antibiotic_details(db, 4)

        assert [a.name for a in items] == ["Azitromicina", "Vancomicina"]
