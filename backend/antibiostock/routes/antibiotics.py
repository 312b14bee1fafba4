"""
AntibioStock Backend: Antibiotic Route Handlers
================================================

What:  Antibiotic listing, low-stock alerts, absolute stock updates and
       single-antibiotic subtraction.
How:   Extracts path/body values, delegates to StockService, returns JSON.
Who:   Called by the stock management screens of the frontend.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from antibiostock.database import get_db_session
from antibiostock.schemas.inventory import (
    AntibioticOut,
    ErrorResponse,
    ItemResponse,
    LowStockResponse,
    StockSubtractRequest,
    StockUpdateRequest,
)
from antibiostock.services.stock_service import stock_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Antibiotics"])


@router.get(
    "/antibioticos",
    response_model=List[AntibioticOut],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List all antibiotics",
    description="Returns every antibiotic with its current quantity and minimum stock, ordered by name.",
)
async def list_antibiotics(db: AsyncSession = Depends(get_db_session)) -> List[AntibioticOut]:
    return await stock_service.list_antibiotics(db)


@router.get(
    "/alerts/low-stock",
    response_model=LowStockResponse,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="Antibiotics at or below minimum stock",
    description=(
        "Returns antibiotics whose quantity is at or below their minimum, "
        "furthest below first, then by name."
    ),
)
async def low_stock_alerts(db: AsyncSession = Depends(get_db_session)) -> LowStockResponse:
    return await stock_service.list_low_stock(db)


@router.put(
    "/antibioticos/{codigo}",
    response_model=ItemResponse,
    responses={
        400: {"description": "cantidad or stock_minimo invalid", "model": ErrorResponse},
        404: {"description": "Antibiotic not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Set quantity and minimum stock",
)
async def update_stock(
    codigo: str,
    payload: StockUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ItemResponse:
    """Overwrite both stock values of one antibiotic; both must be integers >= 0."""
    item = await stock_service.set_stock(
        db=db,
        code=codigo,
        quantity=payload.quantity,
        threshold=payload.threshold,
    )
    return ItemResponse(item=item)


@router.post(
    "/antibioticos/{codigo}/restar",
    response_model=ItemResponse,
    responses={
        400: {"description": "cantidad invalid", "model": ErrorResponse},
        404: {"description": "Antibiotic not found", "model": ErrorResponse},
        409: {"description": "Insufficient stock", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Subtract units from one antibiotic",
    description=(
        "Atomically subtracts `cantidad` units. Fails with 409 and the available "
        "amount when stock is insufficient; nothing is changed in that case."
    ),
)
async def subtract_stock(
    codigo: str,
    payload: StockSubtractRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ItemResponse:
    logger.info("Subtract request: %s x%d", codigo, payload.quantity)
    item = await stock_service.subtract_stock(db=db, code=codigo, quantity=payload.quantity)
    return ItemResponse(item=item)
