"""Distance provider exports."""

from .osrm_client import OSRMClient, check_health, decode_polyline
from .provider import (
    DistanceProvider,
    GeometricDistanceProvider,
    RoadNetworkDistanceProvider,
    build_distance_provider,
)

__all__ = [
    "DistanceProvider",
    "GeometricDistanceProvider",
    "RoadNetworkDistanceProvider",
    "build_distance_provider",
    "OSRMClient",
    "check_health",
    "decode_polyline",
]
