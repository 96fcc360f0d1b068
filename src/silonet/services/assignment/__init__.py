"""Assignment solver exports."""

from .solver import (
    assignment_cost,
    naive_assignment,
    pad_cost_matrix,
    solve_assignment,
    solve_rectangular,
)

__all__ = [
    "solve_assignment",
    "solve_rectangular",
    "pad_cost_matrix",
    "assignment_cost",
    "naive_assignment",
]
