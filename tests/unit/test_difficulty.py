"""
Unit tests for the difficulty controller.
"""

import pytest

from smartpath.core.difficulty import describe_level, next_level


class TestNextLevel:
    def test_correct_from_baseline(self):
        # boost = round(10 * (1 - 50/110)) = round(5.45) = 5
        assert next_level(50, True) == 55

    def test_incorrect_after_correct(self):
        # penalty = round(8 * 55/100) = round(4.4) = 4
        assert next_level(55, False) == 51

    def test_boost_shrinks_near_mastery(self):
        assert next_level(0, True) == 10
        assert next_level(95, True) == 97  # raw boost 1.36 floored to 2

    def test_boost_clamped_at_cap(self):
        assert next_level(99, True) == 100
        assert next_level(100, True) == 100

    def test_penalty_grows_with_level(self):
        assert next_level(100, False) == 92
        assert next_level(10, False) == 7  # raw penalty 0.8 floored to 3

    def test_penalty_clamped_at_floor(self):
        assert next_level(2, False) == 0
        assert next_level(0, False) == 0

    def test_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            next_level(101, True)
        with pytest.raises(ValueError):
            next_level(-1, False)


class TestLevelProperties:
    @pytest.mark.parametrize("correct", [True, False])
    def test_always_within_bounds(self, correct):
        for level in range(0, 101):
            assert 0 <= next_level(level, correct) <= 100

    def test_correct_never_lowers(self):
        for level in range(0, 100):
            assert next_level(level, True) > level

    def test_incorrect_never_raises(self):
        for level in range(1, 101):
            assert next_level(level, False) < level

    def test_descent_faster_than_ascent_when_strong(self):
        for level in range(70, 100):
            up = next_level(level, True) - level
            down = level - next_level(level, False)
            assert down > up


class TestDescribeLevel:
    def test_bands(self):
        assert describe_level(0) == "beginner"
        assert describe_level(20) == "beginner"
        assert describe_level(50) == "intermediate"
        assert describe_level(80) == "advanced"
        assert describe_level(81) == "expert"
