"""
AntibioStock Backend: Antibiogram Route Handlers
=================================================

What:  Antibiogram listing and management of the antibiotics assigned to each one.
How:   Path ids are parsed as integers by FastAPI; a non-integer id is a
       request validation error, reported as 400 by the global handler.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from antibiostock.database import get_db_session
from antibiostock.schemas.inventory import (
    AntibiogramOut,
    AntibioticOut,
    AssignAntibioticsRequest,
    AssignResponse,
    ErrorResponse,
)
from antibiostock.services.antibiogram_service import antibiogram_service

router = APIRouter(prefix="/api", tags=["Antibiograms"])

_INVALID_ID = {400: {"description": "Invalid antibiogram id", "model": ErrorResponse}}


@router.get(
    "/antibiogramas",
    response_model=List[AntibiogramOut],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List all antibiograms",
)
async def list_antibiograms(db: AsyncSession = Depends(get_db_session)) -> List[AntibiogramOut]:
    return await antibiogram_service.list_antibiograms(db)


@router.get(
    "/antibiogramas/{antibiogram_id}/antibioticos",
    response_model=List[str],
    responses=_INVALID_ID,
    summary="Codes of the antibiotics assigned to an antibiogram",
)
async def list_antibiotic_codes(
    antibiogram_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> List[str]:
    return await antibiogram_service.list_antibiotic_codes(db, antibiogram_id)


@router.get(
    "/antibiogramas/{antibiogram_id}/antibioticos_detalle",
    response_model=List[AntibioticOut],
    responses=_INVALID_ID,
    summary="Antibiotics assigned to an antibiogram, with stock data",
)
async def list_antibiotic_details(
    antibiogram_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> List[AntibioticOut]:
    return await antibiogram_service.list_antibiotic_details(db, antibiogram_id)


@router.post(
    "/antibiogramas/{antibiogram_id}/antibioticos",
    response_model=AssignResponse,
    responses={
        **_INVALID_ID,
        500: {"description": "Server error (e.g. unknown antibiotic code)", "model": ErrorResponse},
    },
    summary="Replace the antibiotics assigned to an antibiogram",
    description=(
        "Deletes the current assignment and inserts `codes` in one transaction. "
        "An empty list clears the assignment. `count` is the number of codes sent."
    ),
)
async def replace_antibiotics(
    antibiogram_id: int,
    payload: AssignAntibioticsRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AssignResponse:
    count = await antibiogram_service.replace_antibiotics(db, antibiogram_id, payload.codes)
    return AssignResponse(count=count)
