"""
Identity matching module.

Scans enrolled identities and picks the best one whose score passes the
configured threshold.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

import numpy as np

from ..config import Config
from ..errors import LengthMismatchError
from ..logging_config import get_logger
from ..models import Identity, is_valid_descriptor
from .comparator import compare, distance_to_similarity, is_better, passes_threshold

logger = get_logger(__name__)


@dataclass(frozen=True)
class MatchResult:
    """
    Best matching identity.
    
    Attributes:
        identity: Matched identity
        score: Score under the configured mode
        similarity: Score expressed as similarity, whatever the mode
        skipped_ids: Candidates skipped because of a corrupted or mismatched descriptor
    """
    
    identity: Identity
    score: float
    similarity: float
    skipped_ids: List[Any] = field(default_factory=list)


def find_best_match(
    probe: np.ndarray,
    candidates: Iterable[Identity],
    config: Config,
    skipped_ids: Optional[List[Any]] = None
) -> Optional[MatchResult]:
    """
    Match a probe descriptor against enrolled identities.
    
    Every candidate is scored; the best score passing the threshold wins.
    Ties keep the first candidate encountered. Candidates whose stored
    descriptor is corrupted or differs in length from the probe are skipped.
    
    Args:
        probe: Descriptor to match
        candidates: Enrolled identities, in store order
        config: Service configuration
        skipped_ids: Optional list collecting ids of skipped candidates
    
    Returns:
        MatchResult or None if no candidate qualifies
    """
    mode = config.match_mode
    threshold = config.match_threshold
    skipped: List[Any] = [] if skipped_ids is None else skipped_ids
    
    best: Optional[Identity] = None
    best_score = 0.0
    scanned = 0
    
    for candidate in candidates:
        scanned += 1
        if not is_valid_descriptor(candidate.descriptor):
            skipped.append(candidate.id)
            logger.warning(f'Skipping identity {candidate.id}: stored descriptor is corrupted')
            continue
        
        try:
            score = compare(probe, candidate.descriptor, mode)
        except LengthMismatchError as e:
            skipped.append(candidate.id)
            logger.warning(f'Skipping identity {candidate.id}: {e}')
            continue
        
        if not passes_threshold(score, threshold, mode):
            continue
        
        if best is None or is_better(score, best_score, mode):
            best = candidate
            best_score = score
    
    if best is None:
        logger.debug(f'No match among {scanned} candidates ({mode} threshold {threshold})')
        return None
    
    similarity = distance_to_similarity(best_score) if mode == 'distance' else best_score
    logger.debug(f'Best match: identity {best.id} ({mode}={best_score:.3f})')
    
    return MatchResult(
        identity=best,
        score=best_score,
        similarity=similarity,
        skipped_ids=list(skipped),
    )
