"""Delivery tour sequencing exports."""

from .sequencer import (
    RoadTourSummary,
    TourResult,
    refine_tour_with_ortools,
    road_tour_summary,
    sequence_tour,
)

__all__ = [
    "sequence_tour",
    "refine_tour_with_ortools",
    "road_tour_summary",
    "TourResult",
    "RoadTourSummary",
]
