"""Pre-configured demo scenarios around Santa Cruz de la Sierra."""

from __future__ import annotations

from dataclasses import dataclass

from ..models.domain import GeoPoint, PointRole

_HUB = (-17.783375, -63.182061)

_RAW_SCENARIOS: dict[str, dict] = {
    "small": {
        "name": "Small (3 silos)",
        "silos": [(-17.790000, -63.170000), (-17.775000, -63.175000), (-17.795000, -63.195000)],
        "trucks": [(-17.788000, -63.168000), (-17.772000, -63.180000), (-17.798000, -63.190000)],
    },
    "medium": {
        "name": "Medium (5 silos)",
        "silos": [
            (-17.790000, -63.170000),
            (-17.775000, -63.175000),
            (-17.795000, -63.195000),
            (-17.770000, -63.185000),
            (-17.800000, -63.178000),
        ],
        "trucks": [
            (-17.788000, -63.168000),
            (-17.772000, -63.180000),
            (-17.798000, -63.190000),
            (-17.768000, -63.188000),
            (-17.802000, -63.175000),
        ],
    },
    "large": {
        "name": "Large (8 silos)",
        "silos": [
            (-17.750000, -63.150000),
            (-17.820000, -63.140000),
            (-17.760000, -63.220000),
            (-17.800000, -63.200000),
            (-17.770000, -63.160000),
            (-17.790000, -63.170000),
            (-17.795000, -63.210000),
            (-17.765000, -63.190000),
        ],
        "trucks": [
            (-17.755000, -63.155000),
            (-17.815000, -63.145000),
            (-17.765000, -63.215000),
            (-17.805000, -63.195000),
            (-17.775000, -63.165000),
            (-17.785000, -63.175000),
            (-17.800000, -63.205000),
            (-17.770000, -63.185000),
        ],
    },
    # Trucks start far from their nearest silo, so greedy matching pays off poorly.
    "asymmetric": {
        "name": "Asymmetric (optimization stress test)",
        "silos": [
            (-17.750000, -63.150000),
            (-17.785000, -63.180000),
            (-17.820000, -63.210000),
            (-17.775000, -63.185000),
        ],
        "trucks": [
            (-17.820000, -63.150000),
            (-17.750000, -63.210000),
            (-17.788000, -63.175000),
            (-17.770000, -63.190000),
        ],
    },
}


@dataclass(frozen=True, slots=True)
class Scenario:
    key: str
    name: str
    hub: GeoPoint
    silos: tuple[GeoPoint, ...]
    trucks: tuple[GeoPoint, ...]


def list_scenarios() -> list[str]:
    return list(_RAW_SCENARIOS)


def load_scenario(key: str) -> Scenario:
    try:
        raw = _RAW_SCENARIOS[key]
    except KeyError:
        raise KeyError(f"Unknown scenario '{key}'.") from None
    return Scenario(
        key=key,
        name=raw["name"],
        hub=GeoPoint(*_HUB, role=PointRole.HUB),
        silos=tuple(GeoPoint(lat, lon, id=i, role=PointRole.SILO) for i, (lat, lon) in enumerate(raw["silos"], start=1)),
        trucks=tuple(GeoPoint(lat, lon, id=i, role=PointRole.TRUCK) for i, (lat, lon) in enumerate(raw["trucks"], start=1)),
    )
