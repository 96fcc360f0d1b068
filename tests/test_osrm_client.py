from urllib.parse import unquote

import httpx
import pytest

from silonet.errors import UpstreamUnavailableError
from silonet.services.distance.osrm_client import OSRMClient, check_health, decode_polyline

BASE_URL = "http://osrm.test"


def _coordinates_from(request: httpx.Request) -> list[tuple[float, float]]:
    """(lon, lat) pairs from the coordinate segment of an OSRM URL."""
    segment = unquote(request.url.path).rsplit("/", 1)[-1]
    return [tuple(float(part) for part in pair.split(",")) for pair in segment.split(";")]


def _indices(request: httpx.Request, name: str) -> list[int]:
    return [int(part) for part in request.url.params[name].split(";")]


def _longitude_table_handler(request: httpx.Request) -> httpx.Response:
    """Answer table requests with 1000 m per degree of longitude difference."""
    coordinates = _coordinates_from(request)
    sources = _indices(request, "sources")
    destinations = _indices(request, "destinations")
    distances = [
        [abs(coordinates[s][0] - coordinates[d][0]) * 1000 for d in destinations]
        for s in sources
    ]
    return httpx.Response(200, json={"code": "Ok", "distances": distances})


def _client(handler, **kwargs) -> OSRMClient:
    kwargs.setdefault("max_retries", 0)
    kwargs.setdefault("backoff_seconds", 0)
    return OSRMClient(base_url=BASE_URL, transport=httpx.MockTransport(handler), **kwargs)


def test_route_distance_uses_lon_lat_order_and_returns_km():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = unquote(request.url.path)
        seen["overview"] = request.url.params["overview"]
        return httpx.Response(200, json={"code": "Ok", "routes": [{"distance": 12345.0, "duration": 600.0}]})

    client = _client(handler)
    assert client.route_distance_km((52.0, 13.0), (53.0, 14.0)) == pytest.approx(12.345)
    assert seen["path"] == "/route/v1/driving/13.0,52.0;14.0,53.0"
    assert seen["overview"] == "false"


def test_table_requests_sources_and_destinations_by_index():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["annotations"] == "distance"
        assert request.url.params["sources"] == "0;1"
        assert request.url.params["destinations"] == "2"
        return httpx.Response(200, json={"code": "Ok", "distances": [[1000.0], [2000.0]]})

    client = _client(handler)
    assert client.table([(0.0, 0.0), (0.0, 1.0)], [(0.0, 2.0)]) == [[1000.0], [2000.0]]


def test_table_is_chunked_when_coordinates_exceed_limit():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.params["sources"])
        return _longitude_table_handler(request)

    client = _client(handler, max_coordinates_per_request=4, max_parallel_requests=2)
    sources = [(0.0, 0.0), (0.0, 1.0), (0.0, 2.0)]
    destinations = [(0.0, 5.0), (0.0, 7.0), (0.0, 10.0)]

    distances = client.table(sources, destinations)

    assert len(calls) == 4
    assert distances == [
        [pytest.approx(abs(s[1] - d[1]) * 1000) for d in destinations]
        for s in sources
    ]


def test_table_partial_chunk_failure_leaves_none_cells():
    def handler(request: httpx.Request) -> httpx.Response:
        coordinates = _coordinates_from(request)
        # Fail only the chunk that pairs the last source with the last destination.
        if coordinates[0][0] == 2.0 and coordinates[-1][0] == 10.0:
            return httpx.Response(503)
        return _longitude_table_handler(request)

    client = _client(handler, max_coordinates_per_request=4, max_parallel_requests=1)
    distances = client.table([(0.0, 0.0), (0.0, 1.0), (0.0, 2.0)], [(0.0, 5.0), (0.0, 7.0), (0.0, 10.0)])

    assert distances[2][2] is None
    assert distances[0][0] == pytest.approx(5000.0)
    assert distances[2][1] == pytest.approx(5000.0)


def test_table_raises_when_most_chunks_fail():
    client = _client(lambda request: httpx.Response(500), max_coordinates_per_request=4)
    with pytest.raises(UpstreamUnavailableError):
        client.table([(0.0, 0.0), (0.0, 1.0), (0.0, 2.0)], [(0.0, 5.0), (0.0, 7.0), (0.0, 10.0)])


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500),
        httpx.Response(200, json={"code": "NoRoute", "message": "Impossible route"}),
        httpx.Response(200, json={"code": "Ok"}),
        httpx.Response(200, text="not json"),
    ],
)
def test_route_failures_raise_upstream_unavailable(response):
    client = _client(lambda request: response)
    with pytest.raises(UpstreamUnavailableError):
        client.route_distance_km((0.0, 0.0), (0.0, 1.0))


def test_transport_errors_are_retried_then_raised():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler, max_retries=2)
    with pytest.raises(UpstreamUnavailableError):
        client.table([(0.0, 0.0)], [(0.0, 1.0)])
    assert len(attempts) == 3


def test_uri_too_long_is_not_retried():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        return httpx.Response(414)

    client = _client(handler, max_retries=3)
    with pytest.raises(UpstreamUnavailableError, match="too large"):
        client.table([(0.0, 0.0)], [(0.0, 1.0)])
    assert len(attempts) == 1


def test_missing_base_url_is_rejected(monkeypatch):
    from silonet.config import settings

    monkeypatch.setattr(settings, "osrm_base_url", None)
    with pytest.raises(ValueError):
        OSRMClient()


def test_decode_polyline_reference_example():
    decoded = decode_polyline("_p~iF~ps|U_ulLnnqC_mqNvxq`@")
    assert decoded == [
        pytest.approx((38.5, -120.2)),
        pytest.approx((40.7, -120.95)),
        pytest.approx((43.252, -126.453)),
    ]


def test_check_health_reports_reachability():
    healthy = httpx.MockTransport(lambda request: httpx.Response(200, json={"code": "Ok", "distances": [[1.0]]}))
    broken = httpx.MockTransport(lambda request: httpx.Response(502))

    assert check_health(base_url=BASE_URL, transport=healthy) is True
    assert check_health(base_url=BASE_URL, transport=broken) is False


def _corrupt_gzip_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all")


def test_undecodable_body_raises_upstream_unavailable():
    client = _client(_corrupt_gzip_handler)

    with pytest.raises(UpstreamUnavailableError):
        client.route_distance_km((0.0, 0.0), (0.0, 1.0))
    with pytest.raises(UpstreamUnavailableError):
        client.table([(0.0, 0.0)], [(0.0, 1.0)])


def test_redirect_loop_raises_upstream_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=request)

    with pytest.raises(UpstreamUnavailableError):
        _client(handler).table([(0.0, 0.0)], [(0.0, 1.0)])
