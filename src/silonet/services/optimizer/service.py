"""Two-stage orchestration: network build (MST) followed by truck-to-silo assignment."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Sequence

from ...errors import InvalidInputError
from ...models.domain import GeoPoint
from ..assignment.solver import assignment_cost, naive_assignment, solve_assignment
from ..distance.provider import DistanceProvider, build_distance_provider
from ..network.mst import NetworkResult, build_network

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AssignmentPair:
    truck: GeoPoint
    silo: GeoPoint
    cost: float
    truck_index: int
    silo_index: int


@dataclass(frozen=True, slots=True)
class SolutionMetrics:
    network_cost: float
    positioning_cost: float
    total_optimized: float
    total_baseline: float
    savings: float
    savings_percent: float


@dataclass(frozen=True, slots=True)
class Solution:
    network: NetworkResult
    assignment: tuple[AssignmentPair, ...]
    optimal_assignment: tuple[int, ...]
    positioning_cost: float
    cost_matrix: tuple[tuple[float, ...], ...]
    baseline_assignment: tuple[int, ...]
    baseline_cost: float
    metrics: SolutionMetrics
    distance_source: str

    @property
    def network_cost(self) -> float:
        return self.network.total_cost


def validate_inputs(hub: GeoPoint | None, silos: Sequence[GeoPoint], trucks: Sequence[GeoPoint]) -> None:
    if hub is None:
        raise InvalidInputError("A hub is required.", expected="hub", actual=None)
    if not silos:
        raise InvalidInputError("At least one silo is required.", expected=">= 1 silo", actual=0)
    if not trucks:
        raise InvalidInputError("At least one truck is required.", expected=">= 1 truck", actual=0)
    if len(silos) != len(trucks):
        raise InvalidInputError(
            f"Number of silos ({len(silos)}) must equal number of trucks ({len(trucks)}).",
            expected=len(silos),
            actual=len(trucks),
        )


def extract_route_starts(network: NetworkResult, silos: Sequence[GeoPoint]) -> list[GeoPoint]:
    """Entry points into the network for the assignment phase: every silo.

    ``network`` is accepted so the phase-2 hook can choose entry points from
    the tree; today every silo is one, including unreachable ones, because
    the assignment stays balanced against the trucks.
    """
    return list(silos)


def compute_metrics(network_cost: float, optimal_cost: float, baseline_cost: float) -> SolutionMetrics:
    total_optimized = network_cost + optimal_cost
    total_baseline = network_cost + baseline_cost
    savings = total_baseline - total_optimized
    savings_percent = savings / total_baseline * 100 if total_baseline else 0.0
    return SolutionMetrics(
        network_cost=network_cost,
        positioning_cost=optimal_cost,
        total_optimized=total_optimized,
        total_baseline=total_baseline,
        savings=savings,
        savings_percent=savings_percent,
    )


def optimize_two_stage(
    hub: GeoPoint | None,
    silos: Sequence[GeoPoint],
    trucks: Sequence[GeoPoint],
    *,
    use_road_network: bool | None = None,
    provider: DistanceProvider | None = None,
    cancel_event: threading.Event | None = None,
) -> Solution:
    """Connect silos to the hub, then match trucks to silos.

    Inputs are validated before any distance is requested. A set
    ``cancel_event`` aborts the run with OptimizationCancelled.
    """
    validate_inputs(hub, silos, trucks)
    provider = provider or build_distance_provider(use_road_network)

    logger.info(f"Phase 1: network over {len(silos)} silos using {provider.source} distances")
    network_nodes = [hub, *silos]
    cache = provider.pairwise_cache(network_nodes, cancel_event=cancel_event)
    network = build_network(hub, silos, cache)
    logger.info(f"Network: {len(network.edges)} edges, cost {network.total_cost:.2f} km")

    logger.info(f"Phase 2: assigning {len(trucks)} trucks")
    route_starts = extract_route_starts(network, silos)
    cost_matrix = provider.matrix(trucks, route_starts, cancel_event=cancel_event)

    optimal = solve_assignment(cost_matrix)
    optimal_cost = assignment_cost(optimal, cost_matrix)
    baseline, baseline_cost = naive_assignment(cost_matrix)
    metrics = compute_metrics(network.total_cost, optimal_cost, baseline_cost)

    logger.info(
        f"Optimized total {metrics.total_optimized:.2f} km vs baseline {metrics.total_baseline:.2f} km "
        f"(savings {metrics.savings:.2f} km, {metrics.savings_percent:.1f}%)"
    )

    pairs = tuple(
        AssignmentPair(
            truck=trucks[truck_index],
            silo=route_starts[silo_index],
            cost=cost_matrix[truck_index][silo_index],
            truck_index=truck_index,
            silo_index=silo_index,
        )
        for truck_index, silo_index in enumerate(optimal)
    )
    return Solution(
        network=network,
        assignment=pairs,
        optimal_assignment=tuple(optimal),
        positioning_cost=optimal_cost,
        cost_matrix=tuple(tuple(row) for row in cost_matrix),
        baseline_assignment=tuple(baseline),
        baseline_cost=baseline_cost,
        metrics=metrics,
        distance_source=provider.source,
    )
