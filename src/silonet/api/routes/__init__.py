"""Route group exports."""

from . import health, optimize, scenarios, tour

__all__ = ["health", "optimize", "scenarios", "tour"]
