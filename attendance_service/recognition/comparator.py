"""
Descriptor comparison module.

Computes Euclidean distance between face descriptors and turns it into a
score under one of two policies:
- similarity: clamp(1 - distance, 0, 1), higher is better
- distance: raw distance, lower is better
"""

from typing import Sequence

import numpy as np

from ..errors import LengthMismatchError, ValidationError


def euclidean_distance(a: np.ndarray, b: np.ndarray) -> float:
    """
    Euclidean distance between two descriptors.
    
    Raises:
        LengthMismatchError: If the descriptors differ in length
    """
    if len(a) != len(b):
        raise LengthMismatchError(len(a), len(b))
    
    diff = np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)
    return float(np.sqrt(np.dot(diff, diff)))


def distance_to_similarity(distance: float) -> float:
    """Map a distance onto [0, 1] where 1 is a perfect match."""
    return max(0.0, min(1.0, 1.0 - distance))


def compare(a: np.ndarray, b: np.ndarray, mode: str = 'similarity') -> float:
    """
    Score two descriptors.
    
    Args:
        a: First descriptor
        b: Second descriptor
        mode: 'similarity' or 'distance'
    
    Returns:
        Similarity in [0, 1] or raw distance, depending on mode
    
    Raises:
        LengthMismatchError: If the descriptors differ in length
    """
    distance = euclidean_distance(a, b)
    
    if mode == 'distance':
        return distance
    if mode == 'similarity':
        return distance_to_similarity(distance)
    
    raise ValueError(f'Unknown match mode: {mode}')


def passes_threshold(score: float, threshold: float, mode: str = 'similarity') -> bool:
    """Similarity must reach the threshold; distance must stay below it."""
    if mode == 'distance':
        return score < threshold
    return score >= threshold


def is_better(score: float, other: float, mode: str = 'similarity') -> bool:
    """Whether score strictly beats other under mode."""
    if mode == 'distance':
        return score < other
    return score > other


def mean_descriptor(descriptors: Sequence[np.ndarray]) -> np.ndarray:
    """
    Element-wise mean of several descriptors of one face.
    
    Averaging multiple captures gives a more robust enrollment descriptor.
    
    Raises:
        ValidationError: If no descriptors are given
        LengthMismatchError: If the descriptors differ in length
    """
    if len(descriptors) == 0:
        raise ValidationError('Must provide at least one descriptor')
    
    length = len(descriptors[0])
    for descriptor in descriptors[1:]:
        if len(descriptor) != length:
            raise LengthMismatchError(length, len(descriptor))
    
    return np.mean(np.stack(descriptors), axis=0).astype(np.float32)
