"""
Integer square root test suite.

Coverage:
  - floor(sqrt(x)) bracket property over small, boundary and huge inputs
  - agreement with math.isqrt
  - input validation
"""

import math
import random

import pytest

from quadvote.governance.isqrt import isqrt, quadratic_cost


def assert_floor_root(x: int) -> None:
    r = isqrt(x)
    assert r * r <= x < (r + 1) * (r + 1), f"isqrt({x}) = {r}"


class TestIsqrtValues:
    """Known values."""

    @pytest.mark.parametrize("x,expected", [
        (0, 0), (1, 1), (2, 1), (3, 1), (4, 2), (8, 2), (9, 3),
        (15, 3), (16, 4), (35, 5), (36, 6), (99, 9), (100, 10),
    ])
    def test_small(self, x, expected):
        assert isqrt(x) == expected

    def test_quadratic_pricing(self):
        # 36 credits → 6 votes, 100 credits → 10 votes
        assert isqrt(36) == 6
        assert isqrt(quadratic_cost(10)) == 10


class TestIsqrtBracket:
    """r² ≤ x < (r+1)² for every tested x."""

    def test_first_thousand(self):
        for x in range(1000):
            assert_floor_root(x)

    def test_perfect_squares_and_neighbours(self):
        for r in [1, 2, 10, 255, 65535, 2**32 - 1, 2**64 - 1, 10**30]:
            for x in (r * r - 1, r * r, r * r + 1):
                assert_floor_root(x)
            assert isqrt(r * r) == r
            assert isqrt(r * r - 1) == r - 1

    @pytest.mark.parametrize("bits", [32, 64, 128, 256])
    def test_unsigned_boundaries(self, bits):
        top = 2**bits - 1
        assert_floor_root(top)
        assert_floor_root(top - 1)
        assert isqrt(top) == math.isqrt(top)

    def test_uint256_max_does_not_overflow(self):
        x = 2**256 - 1
        assert isqrt(x) == 2**128 - 1

    def test_matches_math_isqrt_random(self):
        rng = random.Random(1337)
        for _ in range(2000):
            x = rng.getrandbits(rng.randint(1, 300))
            assert isqrt(x) == math.isqrt(x)


class TestIsqrtValidation:
    """Domain errors."""

    def test_negative_raises(self):
        with pytest.raises(ValueError, match="negative"):
            isqrt(-1)

    @pytest.mark.parametrize("bad", [1.5, "9", None, True])
    def test_non_int_raises(self, bad):
        with pytest.raises(TypeError):
            isqrt(bad)

    def test_quadratic_cost_negative_raises(self):
        with pytest.raises(ValueError):
            quadratic_cost(-2)
