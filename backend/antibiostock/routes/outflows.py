"""
AntibioStock Backend: Outflow Route Handler
============================================

What:  Handles POST /api/salidas, which dispenses one antibiogram panel.
How:   Validates the body with OutflowRequest, delegates to OutflowService.

Error responses (handled by global exception handlers):
    HTTP 400: invalid antibiograma_id / unidades, or no antibiotics assigned
    HTTP 409: insufficient stock, with every short antibiotic under details.insuficientes
    HTTP 500: database failure (including a deadlock abort; retry the request)
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from antibiostock.database import get_db_session
from antibiostock.schemas.inventory import ErrorResponse, OutflowRequest, OutflowResponse
from antibiostock.services.outflow_service import outflow_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Outflows"])


@router.post(
    "/salidas",
    response_model=OutflowResponse,
    responses={
        400: {"description": "Invalid input or no antibiotics assigned", "model": ErrorResponse},
        409: {"description": "Insufficient stock", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Register an outflow",
    description=(
        "Subtracts `unidades` from every antibiotic assigned to the antibiogram and "
        "logs the outflow. Either every antibiotic is decremented and the outflow "
        "recorded, or nothing changes."
    ),
)
async def register_outflow(
    payload: OutflowRequest,
    db: AsyncSession = Depends(get_db_session),
) -> OutflowResponse:
    logger.info(
        "Outflow request: antibiogram %d, %d units", payload.antibiogram_id, payload.units
    )
    record = await outflow_service.register_outflow(
        db=db,
        antibiogram_id=payload.antibiogram_id,
        units=payload.units,
    )
    return OutflowResponse(salida=record)
