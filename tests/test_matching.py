import pytest

from attendance_terminal.exceptions import DescriptorMismatchError
from attendance_terminal.recognition import euclidean_distance, match_descriptor

from .conftest import vec


def test_euclidean_distance():
    assert euclidean_distance(vec(0, 0), vec(3, 4)) == pytest.approx(5.0)
    assert euclidean_distance(vec(1, 2, 3), vec(1, 2, 3)) == 0.0


def test_euclidean_distance_rejects_length_mismatch():
    with pytest.raises(DescriptorMismatchError):
        euclidean_distance(vec(0, 0), vec(0, 0, 0))


def test_empty_registry_never_matches(registry):
    profile, distance = match_descriptor(vec(0, 0, 0, 0), registry.snapshot())

    assert profile is None
    assert distance == 0.5


def test_picks_closest_profile_under_threshold(registry):
    registry.add('Far', vec(0.4, 0, 0, 0))
    near = registry.add('Near', vec(0.1, 0, 0, 0))
    registry.add('Outside', vec(2.0, 0, 0, 0))

    profile, distance = match_descriptor(vec(0, 0, 0, 0), registry.snapshot())

    assert profile is near
    assert distance == pytest.approx(0.1)


def test_distance_at_threshold_is_rejected(registry):
    registry.add('Edge', vec(0.5, 0, 0, 0))

    profile, distance = match_descriptor(vec(0, 0, 0, 0), registry.snapshot())

    assert profile is None
    assert distance == 0.5


def test_all_candidates_above_threshold(registry):
    registry.add('A', vec(0.8, 0, 0, 0))
    registry.add('B', vec(0, 0.9, 0, 0))

    profile, _ = match_descriptor(vec(0, 0, 0, 0), registry.snapshot())

    assert profile is None


def test_tie_goes_to_first_profile(registry):
    first = registry.add('First', vec(0.2, 0, 0, 0))
    registry.add('Second', vec(0, 0.2, 0, 0))

    profile, _ = match_descriptor(vec(0, 0, 0, 0), registry.snapshot())

    assert profile is first


def test_custom_threshold_and_distance(registry):
    registry.add('A', vec(1, 0))

    profile, distance = match_descriptor(
        vec(0, 0), registry.snapshot(), threshold=0.3, distance=lambda a, b: 0.25
    )

    assert profile is not None
    assert distance == 0.25


def test_probe_length_mismatch_raises(registry):
    registry.add('A', vec(0, 0, 0, 0))

    with pytest.raises(DescriptorMismatchError):
        match_descriptor(vec(0, 0), registry.snapshot())
