"""Two-stage optimization endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...errors import OptimizationCancelled
from ...models.domain import PointRole
from ...schemas.optimization import OptimizationRequest, OptimizationResponse
from ...services.optimizer.service import optimize_two_stage
from ...services.outputs.formatter import solution_to_response

router = APIRouter(tags=["optimize"])
logger = logging.getLogger(__name__)


def run_optimization(payload: OptimizationRequest) -> OptimizationResponse:
    try:
        solution = optimize_two_stage(
            payload.hub.to_geo_point(PointRole.HUB) if payload.hub else None,
            [silo.to_geo_point(PointRole.SILO) for silo in payload.silos],
            [truck.to_geo_point(PointRole.TRUCK) for truck in payload.trucks],
            use_road_network=payload.use_road_network,
        )
        return solution_to_response(solution)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except OptimizationCancelled as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error optimizing network: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize network: {str(exc)}",
        ) from exc


@router.post("/optimize", response_model=OptimizationResponse, status_code=status.HTTP_200_OK)
def optimize(payload: OptimizationRequest) -> OptimizationResponse:
    return run_optimization(payload)
