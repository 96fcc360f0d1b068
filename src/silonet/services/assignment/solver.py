"""Balanced minimum-cost assignment (Hungarian method) and a greedy baseline."""

from __future__ import annotations

import math
from typing import Sequence

from ...config import settings
from ...errors import InvalidInputError

CostMatrix = Sequence[Sequence[float]]


def _validate(matrix: CostMatrix, *, square: bool) -> tuple[int, int]:
    rows = len(matrix)
    cols = len(matrix[0]) if rows else 0
    for index, row in enumerate(matrix):
        if len(row) != cols:
            raise InvalidInputError(
                f"cost matrix row {index} has {len(row)} columns, expected {cols}",
                expected=cols,
                actual=len(row),
            )
        for value in row:
            if not math.isfinite(value):
                raise InvalidInputError(f"cost matrix row {index} contains non-finite cost {value}")
    if square and rows != cols:
        raise InvalidInputError(
            f"cost matrix must be square, got {rows}x{cols}; pad it first",
            expected=(rows, rows),
            actual=(rows, cols),
        )
    return rows, cols


def pad_cost_matrix(matrix: CostMatrix, sentinel: float | None = None) -> tuple[list[list[float]], int, int]:
    """Pad a rectangular matrix to square with ``sentinel``; return (padded, rows, cols)."""
    rows, cols = _validate(matrix, square=False)
    pad = settings.sentinel_cost if sentinel is None else sentinel
    size = max(rows, cols)
    padded = [list(row) + [pad] * (size - cols) for row in matrix]
    padded.extend([pad] * size for _ in range(size - rows))
    return padded, rows, cols


def solve_assignment(cost_matrix: CostMatrix) -> list[int]:
    """Optimal agent -> task assignment for a square cost matrix.

    Shortest augmenting paths with row/column potentials, O(n^3). Returns
    ``assignment`` where ``assignment[i]`` is the task for agent ``i``.
    """
    n, _ = _validate(cost_matrix, square=True)
    if n == 0:
        return []

    # 1-based potentials; column 0 is the virtual source of each augmenting path.
    u = [0.0] * (n + 1)
    v = [0.0] * (n + 1)
    owner = [0] * (n + 1)
    way = [0] * (n + 1)

    for agent in range(1, n + 1):
        owner[0] = agent
        j0 = 0
        minv = [math.inf] * (n + 1)
        used = [False] * (n + 1)
        while True:
            used[j0] = True
            i0 = owner[j0]
            delta = math.inf
            j1 = 0
            for j in range(1, n + 1):
                if not used[j]:
                    reduced = cost_matrix[i0 - 1][j - 1] - u[i0] - v[j]
                    if reduced < minv[j]:
                        minv[j] = reduced
                        way[j] = j0
                    if minv[j] < delta:
                        delta = minv[j]
                        j1 = j
            for j in range(n + 1):
                if used[j]:
                    u[owner[j]] += delta
                    v[j] -= delta
                else:
                    minv[j] -= delta
            j0 = j1
            if owner[j0] == 0:
                break
        while True:
            j1 = way[j0]
            owner[j0] = owner[j1]
            j0 = j1
            if j0 == 0:
                break

    assignment = [0] * n
    for j in range(1, n + 1):
        assignment[owner[j] - 1] = j - 1
    return assignment


def solve_rectangular(matrix: CostMatrix, sentinel: float | None = None) -> list[tuple[int | None, int | None]]:
    """Solve an unbalanced problem by padding.

    Pairings that involve a padded row or column are reported with ``None``
    on the padded side: they are not real matches.
    """
    padded, rows, cols = pad_cost_matrix(matrix, sentinel)
    pairs: list[tuple[int | None, int | None]] = []
    for agent, task in enumerate(solve_assignment(padded)):
        real_agent = agent if agent < rows else None
        real_task = task if task < cols else None
        if real_agent is None and real_task is None:
            continue
        pairs.append((real_agent, real_task))
    return pairs


def assignment_cost(assignment: Sequence[int], cost_matrix: CostMatrix) -> float:
    return sum(cost_matrix[agent][task] for agent, task in enumerate(assignment))


def naive_assignment(cost_matrix: CostMatrix) -> tuple[list[int], float]:
    """Greedy baseline: take the globally cheapest free (agent, task) pair until all agents are matched.

    Only a comparison point for the optimal solver, never a production answer.
    """
    rows, cols = _validate(cost_matrix, square=False)
    if rows > cols:
        raise InvalidInputError(
            f"naive assignment needs at least as many tasks as agents, got {rows} agents and {cols} tasks",
            expected=rows,
            actual=cols,
        )

    cells = sorted(
        ((cost_matrix[i][j], i, j) for i in range(rows) for j in range(cols)),
        key=lambda cell: cell[0],
    )
    assignment: list[int] = [-1] * rows
    used_tasks: set[int] = set()
    matched = 0
    total = 0.0
    for cost, agent, task in cells:
        if matched == rows:
            break
        if assignment[agent] != -1 or task in used_tasks:
            continue
        assignment[agent] = task
        used_tasks.add(task)
        matched += 1
        total += cost
    return assignment, total
