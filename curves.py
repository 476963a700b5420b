# curves.py
# Shaping primitives shared by the attraction and matrix-shift fields.
# Every function works on python floats and on numpy arrays (element-wise).

from __future__ import annotations
import numpy as np

EPSILON = 1e-4


def _floor(value):
    # divisors / exponents never go below EPSILON
    return max(EPSILON, float(value))


def _out(x):
    # hand scalars back as plain floats, arrays as arrays
    if np.ndim(x) == 0:
        return float(x)
    return x


def clamp_unit(x):
    return _out(np.clip(x, 0.0, 1.0))


def power_curve(x, power):
    """x in [0,1] -> [0,1]. power > 1 pulls values toward 0, < 1 toward 1."""
    return _out(np.power(np.clip(x, 0.0, 1.0), _floor(power)))


def signed_power_curve(x, power):
    """
    Shape |x| with power_curve and put the sign back.
    Lets slider response be tuned near 0 vs near +-1 without losing direction.
    """
    x = np.clip(x, -1.0, 1.0)
    return _out(np.sign(x) * np.power(np.abs(x), _floor(power)))


def smoothstep(t):
    t = np.clip(t, 0.0, 1.0)
    return _out(t * t * (3.0 - 2.0 * t))


def gaussian_falloff(d, k):
    """
    exp(-k * d^2), in (0, 1].
    Unlike smoothstep it keeps a gradient near d = 0, so weights do not plateau.
    """
    d = np.asarray(d, dtype=np.float64)
    return _out(np.exp(-_floor(k) * d * d))


def lerp(a, b, t):
    return a + (b - a) * t


def ease_in_out(t):
    # cubic ease, used by the viewer for the timed move into the matrix
    t = np.clip(t, 0.0, 1.0)
    return _out(np.where(t < 0.5, 4.0 * t * t * t, 1.0 - np.power(-2.0 * t + 2.0, 3) / 2.0))
