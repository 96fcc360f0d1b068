"""Two-stage optimizer exports."""

from .service import AssignmentPair, Solution, SolutionMetrics, optimize_two_stage

__all__ = ["optimize_two_stage", "Solution", "SolutionMetrics", "AssignmentPair"]
