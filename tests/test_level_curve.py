import pytest

from app.config import GamificationConfig
from app.services.level_curve import LevelCurve


@pytest.fixture
def curve() -> LevelCurve:
    return LevelCurve(GamificationConfig())


def test_per_level_cost_uses_default_curve(curve):
    assert curve.experience_required_for_level(2) == 282
    assert curve.experience_required_for_level(3) == 519
    assert curve.experience_required_for_level(4) == 800


def test_level_one_needs_no_experience(curve):
    assert curve.cumulative_experience_for_level(1) == 0
    assert curve.level_from_experience(0) == 1
    assert curve.level_from_experience(-50) == 1


@pytest.mark.parametrize("experience,level", [(281, 1), (282, 2), (800, 2), (801, 3), (1600, 3), (1601, 4)])
def test_level_boundaries(curve, experience, level):
    assert curve.level_from_experience(experience) == level


def test_level_is_monotonic_in_experience(curve):
    levels = [curve.level_from_experience(xp) for xp in range(0, 20000, 37)]
    assert levels == sorted(levels)


def test_cumulative_threshold_maps_back_to_its_level(curve):
    for level in range(1, 25):
        threshold = curve.cumulative_experience_for_level(level)
        assert curve.level_from_experience(threshold) == level
        if level > 1:
            assert curve.level_from_experience(threshold - 1) == level - 1


def test_experience_to_next_level_and_progress(curve):
    assert curve.experience_to_next_level(1, 0) == 282
    assert curve.experience_to_next_level(2, 282) == 519
    assert curve.level_progress_percent(2, 282) == 0
    assert curve.level_progress_percent(2, 282 + 259) == 49
    assert curve.level_progress_percent(1, 10_000) == 100


def test_curve_follows_injected_config():
    flat = LevelCurve(GamificationConfig(base_exp_per_level=10, level_exponent=1))
    assert flat.experience_required_for_level(2) == 20
    assert flat.level_from_experience(20) == 2
    assert flat.level_from_experience(49) == 2
    assert flat.level_from_experience(50) == 3
