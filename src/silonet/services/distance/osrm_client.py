"""HTTP client for interacting with OSRM services."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Sequence

import httpx

from ...config import settings
from ...errors import UpstreamUnavailableError

logger = logging.getLogger(__name__)

# Above this share of failed chunks the whole table is treated as unavailable.
CRITICAL_FAILURE_RATE = 0.5


class OSRMClient:
    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        max_coordinates_per_request: int | None = None,
        max_parallel_requests: int | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self.max_coordinates_per_request = max_coordinates_per_request or settings.osrm_max_coordinates_per_request
        self.max_parallel_requests = max_parallel_requests or settings.osrm_max_parallel_requests
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        """Create a per-call HTTP client; workers never share one."""
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
            limits=httpx.Limits(max_connections=1, max_keepalive_connections=0),
            transport=self._transport,
        )

    def _get_json(self, url: str, params: dict) -> dict:
        """GET ``url`` with retries and return the decoded ``Ok`` payload.

        Raises UpstreamUnavailableError once retries are exhausted.
        """
        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    response.raise_for_status()
                    data = response.json()
                    if not isinstance(data, dict):
                        raise ValueError("OSRM response is not a JSON object.")
                    if data.get("code") != "Ok":
                        raise ValueError(f"OSRM answered {data.get('code')}: {data.get('message', 'no message')}")
                    return data
                except httpx.HTTPStatusError as exc:
                    if exc.response.status_code == 414:
                        raise UpstreamUnavailableError(
                            f"OSRM request URL too large. Try reducing max_coordinates_per_request "
                            f"(current: {self.max_coordinates_per_request})"
                        ) from exc
                    attempt += 1
                    if attempt > self.max_retries:
                        raise UpstreamUnavailableError(f"OSRM returned HTTP {exc.response.status_code}") from exc
                    time.sleep(self.backoff_seconds * attempt)
                except httpx.TimeoutException as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise UpstreamUnavailableError(
                            f"OSRM request timed out after {self.max_retries} retries: {exc}"
                        ) from exc
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM request timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    time.sleep(wait_time)
                except (httpx.RequestError, OSError) as exc:
                    # Transport failures, undecodable bodies and redirect loops.
                    attempt += 1
                    if attempt > self.max_retries:
                        raise UpstreamUnavailableError(
                            f"Failed to connect to OSRM service at {self.base_url}: {exc}"
                        ) from exc
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {exc}")
                    time.sleep(wait_time)
                except ValueError as exc:
                    # Malformed JSON or a non-Ok answer; retrying "NoRoute" rarely helps.
                    attempt += 1
                    if attempt > self.max_retries:
                        raise UpstreamUnavailableError(str(exc)) from exc
                    time.sleep(self.backoff_seconds * attempt)
        finally:
            client.close()

    def route(self, coordinates: Sequence[tuple[float, float]], *, overview: bool = False) -> dict:
        """Get the driving route through ``coordinates`` ((lat, lon) tuples).

        With ``overview`` the first route carries a full polyline geometry.
        """
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required for OSRM route.")

        coordinate_str = ";".join(f"{lon},{lat}" for lat, lon in coordinates)
        params = {
            "overview": "full" if overview else "false",
            "geometries": "polyline",
            "steps": "false",
        }
        url = f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"
        data = self._get_json(url, params)
        if not data.get("routes"):
            raise UpstreamUnavailableError("OSRM route response contained no routes.")
        return data

    def route_distance_km(self, origin: tuple[float, float], destination: tuple[float, float]) -> float:
        data = self.route([origin, destination])
        try:
            return float(data["routes"][0]["distance"]) / 1000.0
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise UpstreamUnavailableError("OSRM route response missing distance.") from exc

    def _table_single_request(
        self,
        sources: Sequence[tuple[float, float]],
        destinations: Sequence[tuple[float, float]],
    ) -> list[list[float | None]]:
        coordinates = [*sources, *destinations]
        coordinate_str = ";".join(f"{lon},{lat}" for lat, lon in coordinates)
        params = {
            "annotations": "distance",
            "sources": ";".join(str(i) for i in range(len(sources))),
            "destinations": ";".join(str(i) for i in range(len(sources), len(coordinates))),
        }
        url = f"{self.base_url}/table/v1/{self.profile}/{coordinate_str}"
        data = self._get_json(url, params)
        distances = data.get("distances")
        if not isinstance(distances, list) or len(distances) != len(sources):
            raise UpstreamUnavailableError("OSRM table response missing distances.")
        for row in distances:
            if not isinstance(row, list) or len(row) != len(destinations):
                raise UpstreamUnavailableError("OSRM table response has a malformed distance row.")
        return distances

    def _process_chunk_request(
        self,
        sources: Sequence[tuple[float, float]],
        destinations: Sequence[tuple[float, float]],
        src_start: int,
        src_end: int,
        dst_start: int,
        dst_end: int,
    ) -> tuple[int, int, list[list[float | None]] | None]:
        try:
            result = self._table_single_request(sources[src_start:src_end], destinations[dst_start:dst_end])
            return (src_start, dst_start, result)
        except UpstreamUnavailableError as exc:
            logger.warning(
                f"Failed to get OSRM data for chunk [{src_start}:{src_end}] -> [{dst_start}:{dst_end}]: {exc}"
            )
            return (src_start, dst_start, None)

    def table(
        self,
        sources: Sequence[tuple[float, float]],
        destinations: Sequence[tuple[float, float]],
    ) -> list[list[float | None]]:
        """Distance matrix in metres, one row per source.

        Large inputs are split into chunks requested in parallel. Cells of a
        failed chunk stay ``None``; if more than half the chunks fail the whole
        table raises UpstreamUnavailableError.
        """
        if not sources or not destinations:
            raise ValueError("OSRM table needs at least one source and one destination.")

        if len(sources) + len(destinations) <= self.max_coordinates_per_request:
            return self._table_single_request(sources, destinations)

        start_time = time.time()
        chunk_size = max(1, self.max_coordinates_per_request // 2)
        src_ranges = [(i, min(i + chunk_size, len(sources))) for i in range(0, len(sources), chunk_size)]
        dst_ranges = [(j, min(j + chunk_size, len(destinations))) for j in range(0, len(destinations), chunk_size)]
        total_requests = len(src_ranges) * len(dst_ranges)
        logger.info(
            f"Chunking OSRM table request: {len(sources)}x{len(destinations)} "
            f"in {total_requests} requests (max {self.max_parallel_requests} concurrent)"
        )

        distances: list[list[float | None]] = [[None] * len(destinations) for _ in sources]
        failed_chunks = 0
        with ThreadPoolExecutor(max_workers=self.max_parallel_requests) as executor:
            futures = [
                executor.submit(self._process_chunk_request, sources, destinations, s0, s1, d0, d1)
                for s0, s1 in src_ranges
                for d0, d1 in dst_ranges
            ]
            for future in as_completed(futures):
                src_start, dst_start, result = future.result()
                if result is None:
                    failed_chunks += 1
                    continue
                for local_src, row in enumerate(result):
                    for local_dst, value in enumerate(row):
                        distances[src_start + local_src][dst_start + local_dst] = value

        elapsed = time.time() - start_time
        failure_rate = failed_chunks / total_requests
        if failure_rate > CRITICAL_FAILURE_RATE:
            raise UpstreamUnavailableError(
                f"Critical failure: {failed_chunks}/{total_requests} chunk requests failed "
                f"({failure_rate * 100:.1f}%)."
            )
        if failed_chunks:
            logger.warning(
                f"Partial failure: {failed_chunks}/{total_requests} chunk requests failed "
                f"after {elapsed:.2f}s; affected cells fall back to geometric distance."
            )
        else:
            logger.info(f"Completed OSRM table request: {total_requests} chunk requests in {elapsed:.2f}s")
        return distances


def decode_polyline(polyline: str) -> list[tuple[float, float]]:
    """Decode a Google polyline string (OSRM default geometry) to (lat, lon) pairs."""
    coordinates = []
    index = 0
    lat = 0
    lon = 0

    while index < len(polyline):
        deltas = []
        for _ in range(2):
            shift = 0
            result = 0
            while True:
                b = ord(polyline[index]) - 63
                index += 1
                result |= (b & 0x1F) << shift
                shift += 5
                if b < 0x20:
                    break
            deltas.append(~(result >> 1) if (result & 1) else (result >> 1))
        lat += deltas[0]
        lon += deltas[1]
        coordinates.append((lat / 1e5, lon / 1e5))

    return coordinates


def check_health(base_url: str | None = None, transport: httpx.BaseTransport | None = None) -> bool:
    """Check OSRM reachability with a minimal two-point table request."""
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        client = OSRMClient(base_url=base, max_retries=0, transport=transport)
        client.table([(52.517037, 13.388860)], [(52.496891, 13.385983)])
        return True
    except UpstreamUnavailableError:
        return False
