"""
Recognition algorithms package.

Contains modules for:
- Descriptor comparison
- Identity matching
- Attendance state resolution
"""

from .comparator import (
    compare,
    euclidean_distance,
    distance_to_similarity,
    passes_threshold,
    mean_descriptor,
)
from .matching import MatchResult, find_best_match
from .resolver import Decision, resolve

__all__ = [
    'compare',
    'euclidean_distance',
    'distance_to_similarity',
    'passes_threshold',
    'mean_descriptor',
    'MatchResult',
    'find_best_match',
    'Decision',
    'resolve',
]
