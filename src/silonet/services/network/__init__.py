"""Network (minimum spanning tree) builder exports."""

from .mst import NetworkEdge, NetworkResult, PairwiseDistanceCache, build_network

__all__ = ["build_network", "NetworkEdge", "NetworkResult", "PairwiseDistanceCache"]
