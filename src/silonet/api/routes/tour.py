"""Delivery tour endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...models.domain import PointRole
from ...schemas.tour import TourRequest, TourResponse
from ...services.outputs.formatter import tour_to_response
from ...services.tour.sequencer import refine_tour_with_ortools, road_tour_summary, sequence_tour

router = APIRouter(tags=["tour"])
logger = logging.getLogger(__name__)


@router.post("/tour", response_model=TourResponse, status_code=status.HTTP_200_OK)
def plan_tour(payload: TourRequest) -> TourResponse:
    start = payload.start.to_geo_point(PointRole.DEPOT)
    orders = [order.to_geo_point(PointRole.ORDER) for order in payload.orders]
    try:
        tour = sequence_tour(start, orders)
        if payload.refine:
            tour = refine_tour_with_ortools(tour)
        road = road_tour_summary(tour) if payload.use_road_network and orders else None
        return tour_to_response(tour, road)
    except ImportError as exc:
        raise HTTPException(status_code=status.HTTP_501_NOT_IMPLEMENTED, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error planning tour: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to plan tour: {str(exc)}",
        ) from exc
