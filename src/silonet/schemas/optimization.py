"""Pydantic request/response models for optimization endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..models.domain import GeoPoint, PointRole


class PointModel(BaseModel):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    id: Optional[int] = Field(default=None, description="Identifier, unique within its role.")

    def to_geo_point(self, role: PointRole) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude, id=self.id, role=role)

    @classmethod
    def from_geo_point(cls, point: GeoPoint) -> "PointModel":
        return cls(latitude=point.latitude, longitude=point.longitude, id=point.id)


class OptimizationRequest(BaseModel):
    hub: Optional[PointModel] = Field(default=None, description="Central hub all silos connect to.")
    silos: list[PointModel] = Field(default_factory=list)
    trucks: list[PointModel] = Field(default_factory=list)
    use_road_network: Optional[bool] = Field(
        default=None,
        description="Use OSRM road distances. Defaults to the configured distance source.",
    )


class NetworkEdgeModel(BaseModel):
    parent: PointModel
    child: PointModel
    parent_role: Optional[str]
    child_role: Optional[str]
    parent_index: int
    child_index: int
    cost_km: float


class NetworkModel(BaseModel):
    edges: list[NetworkEdgeModel]
    total_cost_km: float
    parent_of: list[int] = Field(description="Parent node index per node; node 0 is the hub, -1 marks no parent.")
    unreachable: list[PointModel]


class AssignmentPairModel(BaseModel):
    truck: PointModel
    silo: PointModel
    truck_index: int
    silo_index: int
    cost_km: float


class BaselineModel(BaseModel):
    assignment: list[int]
    cost_km: float


class MetricsModel(BaseModel):
    network_cost: float
    positioning_cost: float
    total_optimized: float
    total_baseline: float
    savings: float
    savings_percent: float


class OptimizationResponse(BaseModel):
    distance_source: str
    network: NetworkModel
    assignment: list[AssignmentPairModel]
    optimal_assignment: list[int]
    positioning_cost_km: float
    cost_matrix: list[list[float]]
    baseline: BaselineModel
    metrics: MetricsModel


class ScenarioModel(BaseModel):
    key: str
    name: str
    hub: PointModel
    silos: list[PointModel]
    trucks: list[PointModel]
