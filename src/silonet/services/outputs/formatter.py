"""Serializers from engine results to API response models."""

from __future__ import annotations

from ...schemas.optimization import (
    AssignmentPairModel,
    BaselineModel,
    MetricsModel,
    NetworkEdgeModel,
    NetworkModel,
    OptimizationResponse,
    PointModel,
    ScenarioModel,
)
from ...schemas.tour import RoadSummaryModel, TourResponse, TourStopModel
from ..optimizer.service import Solution
from ..scenarios import Scenario
from ..tour.sequencer import RoadTourSummary, TourResult


def solution_to_response(solution: Solution) -> OptimizationResponse:
    network = solution.network
    return OptimizationResponse(
        distance_source=solution.distance_source,
        network=NetworkModel(
            edges=[
                NetworkEdgeModel(
                    parent=PointModel.from_geo_point(edge.parent),
                    child=PointModel.from_geo_point(edge.child),
                    parent_role=edge.parent.role.value if edge.parent.role else None,
                    child_role=edge.child.role.value if edge.child.role else None,
                    parent_index=edge.parent_index,
                    child_index=edge.child_index,
                    cost_km=edge.cost,
                )
                for edge in network.edges
            ],
            total_cost_km=network.total_cost,
            parent_of=list(network.parent_of),
            unreachable=[PointModel.from_geo_point(point) for point in network.unreachable],
        ),
        assignment=[
            AssignmentPairModel(
                truck=PointModel.from_geo_point(pair.truck),
                silo=PointModel.from_geo_point(pair.silo),
                truck_index=pair.truck_index,
                silo_index=pair.silo_index,
                cost_km=pair.cost,
            )
            for pair in solution.assignment
        ],
        optimal_assignment=list(solution.optimal_assignment),
        positioning_cost_km=solution.positioning_cost,
        cost_matrix=[list(row) for row in solution.cost_matrix],
        baseline=BaselineModel(assignment=list(solution.baseline_assignment), cost_km=solution.baseline_cost),
        metrics=MetricsModel(
            network_cost=solution.metrics.network_cost,
            positioning_cost=solution.metrics.positioning_cost,
            total_optimized=solution.metrics.total_optimized,
            total_baseline=solution.metrics.total_baseline,
            savings=solution.metrics.savings,
            savings_percent=solution.metrics.savings_percent,
        ),
    )


def tour_to_response(tour: TourResult, road: RoadTourSummary | None = None) -> TourResponse:
    stops = [
        TourStopModel(
            sequence=sequence,
            order_id=point.id,
            latitude=point.latitude,
            longitude=point.longitude,
            distance_from_prev_km=tour.legs_km[sequence - 1],
        )
        for sequence, point in enumerate(tour.order[1:-1], start=1)
    ]
    return TourResponse(
        strategy=tour.strategy,
        visited_sequence=list(tour.visited_sequence),
        stops=stops,
        return_distance_km=tour.legs_km[-1],
        total_distance_km=tour.total_distance_km,
        road=RoadSummaryModel(
            distance_km=road.distance_km,
            duration_min=road.duration_min,
            geometry=road.geometry,
            source=road.source,
        )
        if road
        else None,
    )


def scenario_to_model(scenario: Scenario) -> ScenarioModel:
    return ScenarioModel(
        key=scenario.key,
        name=scenario.name,
        hub=PointModel.from_geo_point(scenario.hub),
        silos=[PointModel.from_geo_point(point) for point in scenario.silos],
        trucks=[PointModel.from_geo_point(point) for point in scenario.trucks],
    )
