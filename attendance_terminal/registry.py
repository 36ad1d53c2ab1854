"""
Profile registry module.

Owns the collection of enrolled profiles and keeps it persisted.
All descriptors in the registry share one length; a descriptor of any
other length is treated as corrupt data.
"""

import threading
import time
import uuid
from typing import Iterator, List, Optional, Sequence
import numpy as np
from .exceptions import DescriptorMismatchError, InvalidNameError
from .logging_config import get_logger
from .models import Profile
from .utils.storage import PROFILES_KEY, KeyValueStore, load_collection, save_collection

logger = get_logger(__name__)


class ProfileRegistry:
    """
    Enrolled identities, in enrollment order.

    Every operation runs under one lock and persists before returning, so
    readers never observe a half-applied change.
    """

    def __init__(self, store: KeyValueStore):
        """
        Initialize registry from the store.

        Args:
            store: Backing key-value store
        """
        self.store = store
        self._lock = threading.RLock()
        self._profiles: List[Profile] = self._load()

    def _load(self) -> List[Profile]:
        profiles = load_collection(self.store, PROFILES_KEY, Profile.from_dict)
        if not profiles:
            return []

        # Keep the dimensionality of the first profile, drop the rest
        dimension = profiles[0].descriptor.size
        consistent = [p for p in profiles if p.descriptor.size == dimension]
        if len(consistent) != len(profiles):
            logger.error(
                f'Dropped {len(profiles) - len(consistent)} stored profiles '
                f'with descriptor length != {dimension}'
            )
        return consistent

    def _persist(self) -> None:
        save_collection(self.store, PROFILES_KEY, (p.to_dict() for p in self._profiles))

    @property
    def dimension(self) -> Optional[int]:
        """Descriptor length shared by all profiles, None while empty."""
        with self._lock:
            if not self._profiles:
                return None
            return int(self._profiles[0].descriptor.size)

    def add(
        self,
        name: str,
        descriptor: Sequence[float],
        captured_at: Optional[float] = None
    ) -> Profile:
        """
        Enroll a new profile.

        Args:
            name: Display name (surrounding whitespace is stripped)
            descriptor: Face signature from the feature extractor
            captured_at: Creation time, defaults to now

        Returns:
            The stored profile with a fresh id

        Raises:
            InvalidNameError: If the name is blank
            DescriptorMismatchError: If the descriptor length differs from
                the enrolled profiles
        """
        clean_name = (name or '').strip()
        if not clean_name:
            raise InvalidNameError('Profile name must not be empty')

        vector = np.asarray(descriptor, dtype=np.float32).ravel()
        if vector.size == 0:
            raise DescriptorMismatchError('Descriptor must not be empty')

        with self._lock:
            dimension = self.dimension
            if dimension is not None and vector.size != dimension:
                raise DescriptorMismatchError(
                    f'Descriptor length {vector.size} != registry dimension {dimension}'
                )

            profile = Profile(
                id=str(uuid.uuid4()),
                name=clean_name,
                descriptor=vector,
                captured_at=time.time() if captured_at is None else captured_at,
            )
            self._profiles.append(profile)
            self._persist()

        logger.info(f'✅ Enrolled {clean_name} (ID: {profile.id})')
        return profile

    def remove(self, profile_id: str) -> bool:
        """
        Delete a profile.

        Returns:
            True if a profile was removed, False if the id was unknown
        """
        with self._lock:
            remaining = [p for p in self._profiles if p.id != profile_id]
            if len(remaining) == len(self._profiles):
                logger.debug(f'Profile {profile_id} not found, nothing removed')
                return False
            self._profiles = remaining
            self._persist()

        logger.info(f'Removed profile {profile_id}')
        return True

    def clear(self) -> None:
        """Remove every profile."""
        with self._lock:
            self._profiles = []
            self.store.remove(PROFILES_KEY)
        logger.info('Profile registry cleared')

    def mark_clocked_in(self, profile_id: str, date: str) -> bool:
        """
        Set the last clock-in date of one profile.

        Returns:
            True if the profile exists, False otherwise
        """
        with self._lock:
            profile = self._find(profile_id)
            if profile is None:
                return False
            profile.last_clock_in = date
            self._persist()
        return True

    def get(self, profile_id: str) -> Optional[Profile]:
        with self._lock:
            return self._find(profile_id)

    def snapshot(self) -> List[Profile]:
        """Copy of the profile list, safe to iterate while others mutate."""
        with self._lock:
            return list(self._profiles)

    def _find(self, profile_id: str) -> Optional[Profile]:
        for profile in self._profiles:
            if profile.id == profile_id:
                return profile
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._profiles)

    def __iter__(self) -> Iterator[Profile]:
        return iter(self.snapshot())
