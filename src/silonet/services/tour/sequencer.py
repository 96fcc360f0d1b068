"""Single-vehicle delivery tour: nearest-neighbour construction with optional OR-Tools refinement.

Nearest neighbour is a heuristic. On random instances its tours typically
run 25-50% longer than optimal; ``refine_tour_with_ortools`` narrows that gap
when OR-Tools is installed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

try:
    from ortools.constraint_solver import pywrapcp, routing_enums_pb2
    ORTOOLS_AVAILABLE = True
except ImportError:
    ORTOOLS_AVAILABLE = False
    pywrapcp = None
    routing_enums_pb2 = None

from ...config import settings
from ...errors import UpstreamUnavailableError
from ...models.domain import GeoPoint
from ..distance.osrm_client import OSRMClient, decode_polyline
from ..geospatial import point_haversine_km

logger = logging.getLogger(__name__)

# Used to estimate durations when no road route is available.
AVERAGE_SPEED_KMH = 40.0

DistanceFn = Callable[[GeoPoint, GeoPoint], float]


@dataclass(frozen=True, slots=True)
class TourResult:
    start: GeoPoint
    order: tuple[GeoPoint, ...]
    visited_sequence: tuple[Optional[int], ...]
    legs_km: tuple[float, ...]
    total_distance_km: float
    strategy: str = "nearest_neighbor"


@dataclass(frozen=True, slots=True)
class RoadTourSummary:
    distance_km: float
    duration_min: float
    geometry: list[tuple[float, float]]
    source: str


def _build_result(start: GeoPoint, stops: Sequence[GeoPoint], distance_fn: DistanceFn, strategy: str) -> TourResult:
    order = (start, *stops, start)
    legs = tuple(distance_fn(a, b) for a, b in zip(order[:-1], order[1:]))
    return TourResult(
        start=start,
        order=order,
        visited_sequence=tuple(stop.id for stop in stops),
        legs_km=legs,
        total_distance_km=sum(legs),
        strategy=strategy,
    )


def sequence_tour(
    start: GeoPoint,
    stops: Sequence[GeoPoint],
    *,
    distance_fn: DistanceFn = point_haversine_km,
) -> TourResult:
    """Visit every stop once, always moving to the closest unvisited one, then return to ``start``.

    Ties go to the stop listed first.
    """
    unvisited = list(stops)
    visited: list[GeoPoint] = []
    current = start

    while unvisited:
        nearest_index = 0
        nearest_distance = distance_fn(current, unvisited[0])
        for index in range(1, len(unvisited)):
            candidate = distance_fn(current, unvisited[index])
            if candidate < nearest_distance:
                nearest_distance = candidate
                nearest_index = index
        current = unvisited.pop(nearest_index)
        visited.append(current)

    return _build_result(start, visited, distance_fn, "nearest_neighbor")


def refine_tour_with_ortools(
    tour: TourResult,
    *,
    distance_fn: DistanceFn = point_haversine_km,
    time_limit_seconds: int | None = None,
) -> TourResult:
    """Improve a tour with OR-Tools guided local search seeded from its current order.

    Returns the input unchanged when OR-Tools finds nothing shorter.
    """
    if not ORTOOLS_AVAILABLE:
        raise ImportError("OR-Tools is not installed. Tour refinement requires the 'ortools' package.")

    stops = list(tour.order[1:-1])
    if len(stops) < 3:
        return tour

    nodes = [tour.start, *stops]
    # OR-Tools works on integers; metres keep enough precision.
    matrix = [[int(round(distance_fn(a, b) * 1000)) for b in nodes] for a in nodes]

    manager = pywrapcp.RoutingIndexManager(len(nodes), 1, 0)
    routing = pywrapcp.RoutingModel(manager)

    def distance_callback(from_index: int, to_index: int) -> int:
        return matrix[manager.IndexToNode(from_index)][manager.IndexToNode(to_index)]

    transit_callback_index = routing.RegisterTransitCallback(distance_callback)
    routing.SetArcCostEvaluatorOfAllVehicles(transit_callback_index)

    search_parameters = pywrapcp.DefaultRoutingSearchParameters()
    search_parameters.local_search_metaheuristic = (
        routing_enums_pb2.LocalSearchMetaheuristic.GUIDED_LOCAL_SEARCH
    )
    search_parameters.time_limit.FromSeconds(time_limit_seconds or settings.tour_refine_time_limit_seconds)

    initial = routing.ReadAssignmentFromRoutes([list(range(1, len(nodes)))], True)
    solution = routing.SolveFromAssignmentWithParameters(initial, search_parameters)
    if not solution:
        logger.warning("OR-Tools could not refine the tour, keeping nearest-neighbour order")
        return tour

    refined: list[GeoPoint] = []
    index = routing.Start(0)
    while not routing.IsEnd(index):
        node = manager.IndexToNode(index)
        if node != 0:
            refined.append(nodes[node])
        index = solution.Value(routing.NextVar(index))

    candidate = _build_result(tour.start, refined, distance_fn, "ortools")
    if candidate.total_distance_km >= tour.total_distance_km:
        return tour
    logger.info(
        f"OR-Tools shortened tour from {tour.total_distance_km:.2f} km to {candidate.total_distance_km:.2f} km"
    )
    return candidate


def road_tour_summary(tour: TourResult, client: OSRMClient | None = None) -> RoadTourSummary:
    """Road distance, duration and geometry of the tour's waypoints.

    Falls back to the straight-line tour and an average-speed duration when
    OSRM cannot answer.
    """
    waypoints = [point.as_lat_lon() for point in tour.order]
    try:
        client = client or OSRMClient()
        data = client.route(waypoints, overview=True)
        route = data["routes"][0]
        return RoadTourSummary(
            distance_km=float(route["distance"]) / 1000.0,
            duration_min=float(route["duration"]) / 60.0,
            geometry=decode_polyline(route.get("geometry") or "") or waypoints,
            source="road",
        )
    except (UpstreamUnavailableError, ValueError, KeyError, IndexError, TypeError) as exc:
        logger.warning(f"OSRM route for tour failed: {exc}. Using straight-line tour.")
        return RoadTourSummary(
            distance_km=tour.total_distance_km,
            duration_min=tour.total_distance_km / AVERAGE_SPEED_KMH * 60.0,
            geometry=waypoints,
            source="geometric",
        )
