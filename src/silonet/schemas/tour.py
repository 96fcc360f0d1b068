"""Pydantic request/response models for delivery tour endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from .optimization import PointModel


class TourRequest(BaseModel):
    start: PointModel = Field(..., description="Depot where the tour starts and ends.")
    orders: list[PointModel] = Field(default_factory=list, description="Delivery stops to visit.")
    refine: bool = Field(default=False, description="Improve the nearest-neighbour tour with OR-Tools.")
    use_road_network: bool = Field(default=False, description="Report road distance and geometry from OSRM.")


class TourStopModel(BaseModel):
    sequence: int
    order_id: Optional[int]
    latitude: float
    longitude: float
    distance_from_prev_km: float


class RoadSummaryModel(BaseModel):
    distance_km: float
    duration_min: float
    geometry: list[tuple[float, float]]
    source: str


class TourResponse(BaseModel):
    strategy: str
    visited_sequence: list[Optional[int]]
    stops: list[TourStopModel]
    return_distance_km: float
    total_distance_km: float
    road: Optional[RoadSummaryModel] = None
