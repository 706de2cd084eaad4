"""
AI Algorithms Module
Core algorithms for candidate merging and geo ranking
"""

from .candidate_merge import (
    MergeResult,
    count_used_places,
    dedupe_candidates,
    exclude_kinds,
    merge_in_order,
)
from .geo import haversine_km, initial_bearing_deg, rank_nearby

__all__ = [
    "MergeResult",
    "count_used_places",
    "dedupe_candidates",
    "exclude_kinds",
    "merge_in_order",
    "haversine_km",
    "initial_bearing_deg",
    "rank_nearby"
]
