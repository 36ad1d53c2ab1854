"""
Recognition algorithms package.

Contains modules for:
- Descriptor distance
- Matching against enrolled profiles
"""

from .matching import DEFAULT_THRESHOLD, euclidean_distance, match_descriptor

__all__ = [
    'DEFAULT_THRESHOLD',
    'euclidean_distance',
    'match_descriptor',
]
