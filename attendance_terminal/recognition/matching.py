"""
Descriptor matching module.

Matches a probe descriptor against enrolled profiles using Euclidean
distance, the native metric of the embedding space.
"""

import numpy as np
from typing import Callable, Iterable, Optional, Sequence, Tuple
from ..exceptions import DescriptorMismatchError
from ..models import Profile

DEFAULT_THRESHOLD = 0.5

DistanceFn = Callable[[np.ndarray, np.ndarray], float]


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Euclidean distance between two descriptors.

    Raises:
        DescriptorMismatchError: If the descriptors differ in length
    """
    va = np.asarray(a, dtype=np.float32).ravel()
    vb = np.asarray(b, dtype=np.float32).ravel()

    if va.size != vb.size:
        raise DescriptorMismatchError(
            f'Descriptor length mismatch: {va.size} != {vb.size}'
        )

    return float(np.linalg.norm(va - vb))


def match_descriptor(
    probe: Sequence[float],
    profiles: Iterable[Profile],
    threshold: float = DEFAULT_THRESHOLD,
    distance: DistanceFn = euclidean_distance
) -> Tuple[Optional[Profile], float]:
    """
    Find the closest enrolled profile under the acceptance threshold.

    The running minimum starts at the threshold, so a candidate at or
    above it is never selected. On an exact tie the profile seen first
    wins.

    Args:
        probe: Descriptor extracted from the current frame
        profiles: Enrolled profiles, in registry order
        threshold: Acceptance threshold
        distance: Distance function

    Returns:
        Tuple of (profile, distance) or (None, threshold) if no match
    """
    probe_vec = np.asarray(probe, dtype=np.float32).ravel()

    best_profile: Optional[Profile] = None
    min_distance = threshold

    for profile in profiles:
        d = distance(probe_vec, profile.descriptor)
        if d < min_distance and d < threshold:
            min_distance = d
            best_profile = profile

    return best_profile, min_distance
