"""
Integer square root for quadratic vote weighting.

Spending ``c`` credits buys ``floor(sqrt(c))`` votes. The root is computed
with the Babylonian (Newton) iteration over integers only, so the result is
bit-exact for arbitrarily large inputs where a float ``math.sqrt`` would
round.
"""


def isqrt(x: int) -> int:
    """
    Return ``floor(sqrt(x))`` for a non-negative integer.

    Iteration: ``z = (x + 1) // 2``, ``y = x``; while ``z < y`` set
    ``y = z`` and ``z = (x // z + z) // 2``; the answer is ``y``.

    Raises:
        TypeError:  *x* is not an int (bools are rejected too)
        ValueError: *x* is negative
    """
    if not isinstance(x, int) or isinstance(x, bool):
        raise TypeError(f"isqrt() requires an int, got {type(x).__name__}")
    if x < 0:
        raise ValueError(f"isqrt() of negative number: {x}")
    if x == 0:
        return 0

    z = (x + 1) // 2
    y = x
    while z < y:
        y = z
        z = (x // z + z) // 2
    return y


def quadratic_cost(votes: int) -> int:
    """Credits needed to buy exactly *votes* votes."""
    if votes < 0:
        raise ValueError(f"votes must be non-negative, got {votes}")
    return votes * votes
