import math

import numpy as np

# bounds past these make numpy's span arithmetic overflow
FLOAT_LIMIT = float(np.finfo(np.float64).max) / 4
INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 2


def ensure_rng(rng=None):
    if rng is None:
        return np.random.default_rng()
    if isinstance(rng, np.random.Generator):
        return rng
    # accept a plain int seed
    return np.random.default_rng(rng)


def clamp(value, lo, hi):
    return min(max(value, lo), hi)


def rand(rng, lo, hi):
    lo = clamp(float(lo), -FLOAT_LIMIT, FLOAT_LIMIT)
    hi = clamp(float(hi), -FLOAT_LIMIT, FLOAT_LIMIT)
    if hi < lo:
        lo, hi = hi, lo
    if hi == lo:
        return lo
    return float(rng.uniform(lo, hi))


def rand_int(rng, lo, hi):
    """Inclusive integer draw in [lo, hi], limited to the int64 range."""
    lo = clamp(int(lo), INT_MIN, INT_MAX)
    hi = clamp(int(hi), INT_MIN, INT_MAX)
    if hi < lo:
        lo, hi = hi, lo
    return int(rng.integers(lo, hi + 1))


def rand_choice(rng, items):
    return items[int(rng.integers(0, len(items)))]


def round2(value):
    return round(float(value), 2)


def round_half_up(value):
    return int(math.floor(float(value) + 0.5))
