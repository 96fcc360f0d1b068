"""Domain models for geographic points."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PointRole(str, Enum):
    HUB = "hub"
    SILO = "silo"
    TRUCK = "truck"
    ORDER = "order"
    DEPOT = "depot"


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """Immutable coordinate pair tagged with its role.

    ``id`` is unique within a role, not globally. Relocating an entity means
    creating a new point.
    """

    latitude: float
    longitude: float
    id: Optional[int] = None
    role: Optional[PointRole] = None

    def as_lat_lon(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)

    @property
    def label(self) -> str:
        if self.role is PointRole.HUB:
            return "hub"
        name = self.role.value if self.role is not None else "point"
        if self.id is None:
            return name
        return f"{name} #{self.id}"
