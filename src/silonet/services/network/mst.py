"""Minimum spanning tree (Prim) connecting silos to the hub."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Sequence

from ...errors import InvalidInputError
from ...models.domain import GeoPoint
from ..geospatial import point_euclidean_km

logger = logging.getLogger(__name__)

PairCost = Callable[[int, int], float | None]


class PairwiseDistanceCache:
    """Symmetric distances keyed by unordered node-index pairs.

    Lookups are order independent; a missing pair reads as ``math.inf``.
    """

    def __init__(self, distances: dict[tuple[int, int], float] | None = None) -> None:
        self._distances: dict[tuple[int, int], float] = {}
        for (i, j), value in (distances or {}).items():
            self.set(i, j, value)

    @staticmethod
    def key(i: int, j: int) -> tuple[int, int]:
        return (min(i, j), max(i, j))

    def set(self, i: int, j: int, value: float) -> None:
        if i == j:
            return
        self._distances[self.key(i, j)] = float(value)

    def get(self, i: int, j: int) -> float:
        if i == j:
            return 0.0
        return self._distances.get(self.key(i, j), math.inf)

    __call__ = get

    def __len__(self) -> int:
        return len(self._distances)

    def __contains__(self, pair: tuple[int, int]) -> bool:
        return self.key(*pair) in self._distances


@dataclass(frozen=True, slots=True)
class NetworkEdge:
    parent: GeoPoint
    child: GeoPoint
    cost: float
    parent_index: int
    child_index: int


@dataclass(frozen=True, slots=True)
class NetworkResult:
    """Tree rooted at the hub, stored as parent indices.

    ``nodes[0]`` is the hub. ``parent_of[i]`` is -1 for the hub and for any
    node that could not be attached (listed in ``unreachable``).
    """

    nodes: tuple[GeoPoint, ...]
    edges: tuple[NetworkEdge, ...]
    total_cost: float
    parent_of: tuple[int, ...]
    unreachable: tuple[GeoPoint, ...] = ()

    @property
    def hub(self) -> GeoPoint:
        return self.nodes[0]

    @property
    def is_complete(self) -> bool:
        return not self.unreachable

    def index_of(self, point: GeoPoint) -> int:
        for index, node in enumerate(self.nodes):
            if node == point:
                return index
        raise KeyError(f"{point.label} is not part of this network")

    def path_to_root(self, index: int) -> list[int]:
        """Node indices from ``index`` up to the hub, both included."""
        if not 0 <= index < len(self.nodes):
            raise IndexError(f"node index {index} out of range")
        if index != 0 and self.parent_of[index] == -1:
            raise ValueError(f"{self.nodes[index].label} is unreachable from the hub")
        path = [index]
        current = index
        while current != 0:
            current = self.parent_of[current]
            path.append(current)
        return path

    def path_to_hub(self, point: GeoPoint) -> list[GeoPoint]:
        return [self.nodes[i] for i in self.path_to_root(self.index_of(point))]


def _pair_cost(cost_fn: PairCost, i: int, j: int) -> float:
    try:
        value = cost_fn(i, j)
    except LookupError:
        return math.inf
    if value is None or math.isnan(value):
        return math.inf
    if value < 0:
        raise InvalidInputError(f"negative cost {value} between nodes {i} and {j}", expected=">= 0", actual=value)
    return float(value)


def build_network(
    hub: GeoPoint,
    points: Sequence[GeoPoint],
    cost_fn: PairCost | None = None,
) -> NetworkResult:
    """Connect ``points`` to ``hub`` with Prim's algorithm.

    ``cost_fn(i, j)`` prices node indices where 0 is the hub and ``k + 1`` is
    ``points[k]``; it defaults to planar distance. Ties go to the lowest
    index. Pairs the function cannot price count as unreachable.
    """
    nodes = (hub, *points)
    if not points:
        return NetworkResult(nodes=nodes, edges=(), total_cost=0.0, parent_of=(-1,))

    if cost_fn is None:
        def cost_fn(i: int, j: int) -> float:
            return point_euclidean_km(nodes[i], nodes[j])

    n = len(nodes)
    in_tree = [False] * n
    key = [math.inf] * n
    parent = [-1] * n
    key[0] = 0.0

    edges: list[NetworkEdge] = []
    total_cost = 0.0

    for _ in range(n):
        min_key = math.inf
        current = -1
        for v in range(n):
            if not in_tree[v] and key[v] < min_key:
                min_key = key[v]
                current = v

        if current == -1:
            break

        in_tree[current] = True
        if parent[current] != -1:
            edges.append(
                NetworkEdge(
                    parent=nodes[parent[current]],
                    child=nodes[current],
                    cost=key[current],
                    parent_index=parent[current],
                    child_index=current,
                )
            )
            total_cost += key[current]

        for v in range(n):
            if not in_tree[v]:
                cost = _pair_cost(cost_fn, current, v)
                if cost < key[v]:
                    key[v] = cost
                    parent[v] = current

    unreachable = tuple(nodes[v] for v in range(1, n) if not in_tree[v])
    if unreachable:
        logger.warning(
            f"Network left {len(unreachable)} of {n - 1} points unattached: "
            f"{', '.join(point.label for point in unreachable)}"
        )

    return NetworkResult(
        nodes=nodes,
        edges=tuple(edges),
        total_cost=total_cost,
        parent_of=tuple(parent),
        unreachable=unreachable,
    )
