"""Distance sources: geometric approximations and OSRM road distances with fallback."""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable, Literal, Protocol, Sequence

from ...config import settings
from ...errors import OptimizationCancelled, UpstreamUnavailableError
from ...models.domain import GeoPoint
from ..geospatial import point_euclidean_km, point_haversine_km
from ..network.mst import PairwiseDistanceCache
from .osrm_client import OSRMClient

logger = logging.getLogger(__name__)

Metric = Literal["euclidean", "haversine"]


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise OptimizationCancelled("Distance computation cancelled.")


class DistanceProvider(Protocol):
    """Travel cost in kilometres between geographic points."""

    source: str

    def distance(self, a: GeoPoint, b: GeoPoint) -> float:
        ...

    def matrix(
        self,
        sources: Sequence[GeoPoint],
        destinations: Sequence[GeoPoint],
        *,
        cancel_event: threading.Event | None = None,
    ) -> list[list[float]]:
        ...

    def pairwise_cache(
        self,
        points: Sequence[GeoPoint],
        *,
        cancel_event: threading.Event | None = None,
    ) -> PairwiseDistanceCache:
        ...


class GeometricDistanceProvider:
    """Pure, symmetric distances computed from coordinates alone."""

    source = "geometric"

    def __init__(self, metric: Metric = "euclidean") -> None:
        if metric == "euclidean":
            self._fn = point_euclidean_km
        elif metric == "haversine":
            self._fn = point_haversine_km
        else:
            raise ValueError(f"Unknown geometric metric '{metric}'.")
        self.metric = metric

    def distance(self, a: GeoPoint, b: GeoPoint) -> float:
        return self._fn(a, b)

    def matrix(self, sources, destinations, *, cancel_event=None) -> list[list[float]]:
        _check_cancelled(cancel_event)
        return [[self._fn(a, b) for b in destinations] for a in sources]

    def pairwise_cache(self, points, *, cancel_event=None) -> PairwiseDistanceCache:
        _check_cancelled(cancel_event)
        cache = PairwiseDistanceCache()
        for i in range(len(points)):
            for j in range(i + 1, len(points)):
                cache.set(i, j, self._fn(points[i], points[j]))
        return cache


class RoadNetworkDistanceProvider:
    """Driving distances from OSRM, degrading to geometric distance.

    Upstream failures never reach the caller: a failed table request becomes
    serial pairwise requests, and a failed pairwise request becomes the
    geometric distance for that cell only.
    """

    source = "road"

    def __init__(
        self,
        client: OSRMClient | None = None,
        fallback: GeometricDistanceProvider | None = None,
        *,
        pairwise_delay_seconds: float | None = None,
        cache_delay_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if client is None:
            try:
                client = OSRMClient()
            except ValueError as exc:
                logger.warning(f"{exc} Road distances will use the geometric fallback.")
        self.client = client
        self.fallback = fallback or GeometricDistanceProvider()
        self.pairwise_delay_seconds = (
            settings.osrm_pairwise_delay_seconds if pairwise_delay_seconds is None else pairwise_delay_seconds
        )
        self.cache_delay_seconds = (
            settings.osrm_mst_delay_seconds if cache_delay_seconds is None else cache_delay_seconds
        )
        self._sleep = sleep

    def distance(self, a: GeoPoint, b: GeoPoint) -> float:
        if a.as_lat_lon() == b.as_lat_lon():
            return 0.0
        if self.client is None:
            return self.fallback.distance(a, b)
        try:
            return self.client.route_distance_km(a.as_lat_lon(), b.as_lat_lon())
        except UpstreamUnavailableError as exc:
            logger.warning(f"OSRM route {a.label} -> {b.label} failed: {exc}. Using geometric distance.")
            return self.fallback.distance(a, b)

    def _serial_matrix(self, sources, destinations, delay: float, cancel_event) -> list[list[float]]:
        result: list[list[float]] = []
        first = True
        for a in sources:
            row: list[float] = []
            for b in destinations:
                _check_cancelled(cancel_event)
                if not first and delay:
                    self._sleep(delay)
                first = False
                row.append(self.distance(a, b))
            result.append(row)
        return result

    def _to_km(self, meters: float | None, a: GeoPoint, b: GeoPoint) -> float:
        if isinstance(meters, (int, float)) and math.isfinite(meters) and meters >= 0:
            return float(meters) / 1000.0
        return self.fallback.distance(a, b)

    def matrix(self, sources, destinations, *, cancel_event=None) -> list[list[float]]:
        _check_cancelled(cancel_event)
        if not sources or not destinations:
            return [[] for _ in sources]
        if self.client is None:
            return self.fallback.matrix(sources, destinations)

        try:
            meters = self.client.table(
                [p.as_lat_lon() for p in sources],
                [p.as_lat_lon() for p in destinations],
            )
        except UpstreamUnavailableError as exc:
            logger.warning(f"OSRM table request failed: {exc}. Falling back to pairwise requests.")
            return self._serial_matrix(sources, destinations, self.pairwise_delay_seconds, cancel_event)

        missing = sum(1 for row in meters for value in row if value is None)
        if missing:
            logger.warning(f"OSRM table left {missing} cells without a route; using geometric distance for them.")
        return [
            [self._to_km(meters[i][j], a, b) for j, b in enumerate(destinations)]
            for i, a in enumerate(sources)
        ]

    def pairwise_cache(self, points, *, cancel_event=None) -> PairwiseDistanceCache:
        _check_cancelled(cancel_event)
        if self.client is None or len(points) < 2:
            return self.fallback.pairwise_cache(points)

        cache = PairwiseDistanceCache()
        try:
            coordinates = [p.as_lat_lon() for p in points]
            meters = self.client.table(coordinates, coordinates)
        except UpstreamUnavailableError as exc:
            logger.warning(
                f"OSRM table request for {len(points)} network nodes failed: {exc}. "
                f"Computing {len(points) * (len(points) - 1) // 2} distances pairwise."
            )
            first = True
            for i in range(len(points)):
                for j in range(i + 1, len(points)):
                    _check_cancelled(cancel_event)
                    if not first and self.cache_delay_seconds:
                        self._sleep(self.cache_delay_seconds)
                    first = False
                    cache.set(i, j, self.distance(points[i], points[j]))
            return cache

        for i in range(len(points)):
            for j in range(i + 1, len(points)):
                # Road distances are directional; the network treats segments as undirected.
                cache.set(i, j, self._to_km(meters[i][j], points[i], points[j]))
        return cache


def build_distance_provider(use_road_network: bool | None = None) -> DistanceProvider:
    use_road = settings.use_road_network if use_road_network is None else use_road_network
    if not use_road:
        return GeometricDistanceProvider()
    if not settings.osrm_base_url:
        logger.warning("Road distances requested but no OSRM base URL is configured; using geometric distances.")
        return GeometricDistanceProvider()
    return RoadNetworkDistanceProvider()
