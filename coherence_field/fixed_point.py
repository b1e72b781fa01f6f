"""
Fixed-point arithmetic for the coherence field.

Every real-valued quantity the engine stores or compares is an integer
mantissa at scale PRECISION (1e9). Products and quotients truncate toward
zero, and the transcendental functions below are evaluated with integer
series only, so any observer re-running an epoch from the same snapshot
derives bit-identical results.

(c) 2026 Anywave Creations
MIT License
"""

from decimal import Decimal, ROUND_HALF_EVEN
from math import isqrt
from typing import Tuple, Union

PRECISION = 1_000_000_000

# Angles (radians, rounded to nearest at 1e-9)
PI = 3_141_592_654
TWO_PI = 6_283_185_307
HALF_PI = 1_570_796_327
QUARTER_PI = 785_398_163

# Golden ratio family
PHI = 1_618_033_989
PHI_INVERSE = 618_033_989
PHI_SQUARED = 2_618_033_989
PHI_FOURTH = 6_854_101_966

LN2 = 693_147_181
LN_PHI = 481_211_825

# atan(2^-i) for the CORDIC vectoring loop
_ATAN_TABLE = (
    785_398_163, 463_647_609, 244_978_663, 124_354_995,
    62_418_810, 31_239_833, 15_623_729, 7_812_341,
    3_906_230, 1_953_123, 976_562, 488_281,
    244_141, 122_070, 61_035, 30_518,
    15_259, 7_629, 3_815, 1_907,
    954, 477, 238, 119,
    60, 30, 15, 7,
    4, 2, 1,
)
_CORDIC_GUARD_BITS = 32
_SERIES_GUARD_BITS = 32

Real = Union[int, float, str, Decimal]


def tdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    if b == 0:
        raise ZeroDivisionError("fixed-point division by zero")
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def mul(a: int, b: int) -> int:
    """Multiply two fixed-point values."""
    return tdiv(a * b, PRECISION)


def div(a: int, b: int) -> int:
    """Divide two fixed-point values."""
    return tdiv(a * PRECISION, b)


def to_fixed(value: Real) -> int:
    """Convert a real number to a fixed-point mantissa.

    Floats go through their shortest repr, so the same literal always
    yields the same mantissa regardless of platform.
    """
    if isinstance(value, bool):
        raise TypeError("booleans are not real-valued quantities")
    scaled = Decimal(str(value)) * PRECISION
    return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_EVEN))


def to_float(value: int) -> float:
    """Convert a fixed-point mantissa to float (display only)."""
    return value / PRECISION


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def normalize_phase(theta: int) -> int:
    """Wrap an angle into [0, 2π)."""
    return theta % TWO_PI


def phase_difference(a: int, b: int) -> int:
    """Signed shortest angle from b to a, in (-π, π]."""
    d = (a - b) % TWO_PI
    if 2 * d > TWO_PI:
        d -= TWO_PI
    return d


def angular_distance(a: int, b: int) -> int:
    """Unsigned shortest angle between a and b, in [0, π]."""
    return abs(phase_difference(a, b))


# =============================================================================
# TRIGONOMETRY
# =============================================================================

def _sin_kernel(x: int) -> int:
    # Taylor series on [0, π/4]; truncation error < 1e-10
    x2 = tdiv(x * x, PRECISION)
    term = x
    total = x
    for n in (2, 4, 6, 8, 10):
        term = -tdiv(tdiv(term * x2, PRECISION), n * (n + 1))
        total += term
    return total


def _cos_kernel(x: int) -> int:
    x2 = tdiv(x * x, PRECISION)
    term = PRECISION
    total = PRECISION
    for n in (1, 3, 5, 7, 9):
        term = -tdiv(tdiv(term * x2, PRECISION), n * (n + 1))
        total += term
    return total


def sincos(theta: int) -> Tuple[int, int]:
    """Return (sin θ, cos θ) as fixed-point values in [-1, 1].

    The angle is reduced exactly to a quadrant and then to [0, π/4]
    before the series kernels are applied.
    """
    t = theta % TWO_PI
    quadrant = t // HALF_PI
    r = t - quadrant * HALF_PI
    if r <= QUARTER_PI:
        s, c = _sin_kernel(r), _cos_kernel(r)
    else:
        c, s = _sin_kernel(HALF_PI - r), _cos_kernel(HALF_PI - r)

    if quadrant == 0:
        result = (s, c)
    elif quadrant == 1:
        result = (c, -s)
    elif quadrant == 2:
        result = (-s, -c)
    else:
        result = (-c, s)
    return (clamp(result[0], -PRECISION, PRECISION),
            clamp(result[1], -PRECISION, PRECISION))


def sin(theta: int) -> int:
    return sincos(theta)[0]


def cos(theta: int) -> int:
    return sincos(theta)[1]


def atan2(y: int, x: int) -> int:
    """Angle of the vector (x, y), normalized to [0, 2π).

    Integer CORDIC in vectoring mode. Only the angle is used, so the
    CORDIC gain never needs correcting. atan2(0, 0) is defined as 0.
    """
    if x == 0 and y == 0:
        return 0
    angle = 0
    if x < 0:
        x, y = -x, -y
        angle = PI
    x <<= _CORDIC_GUARD_BITS
    y <<= _CORDIC_GUARD_BITS
    for i, step in enumerate(_ATAN_TABLE):
        if y > 0:
            x, y = x + (y >> i), y - (x >> i)
            angle += step
        elif y < 0:
            x, y = x - (y >> i), y + (x >> i)
            angle -= step
        else:
            break
    return normalize_phase(angle)


def magnitude(x: int, y: int) -> int:
    """Euclidean norm of a fixed-point vector (exact integer square root)."""
    return isqrt(x * x + y * y)


# =============================================================================
# EXPONENTIALS
# =============================================================================

def _round_guard(value: int, bits: int) -> int:
    """Drop `bits` guard bits from a non-negative value, rounding half up."""
    if bits <= 0:
        return value << -bits
    return (value + (1 << (bits - 1))) >> bits


def ln(x: int) -> int:
    """Natural logarithm of a positive fixed-point value."""
    if x <= 0:
        raise ValueError(f"ln undefined for non-positive value {x}")

    # x = m * 2^k with m in [1, 2)
    k = 0
    m = x
    while m >= 2 * PRECISION:
        m >>= 1
        k += 1
    while m < PRECISION:
        m <<= 1
        k -= 1

    # ln(m) = 2 * atanh(z), z = (m - 1) / (m + 1) <= 1/3, summed with guard bits
    one = PRECISION << _SERIES_GUARD_BITS
    mg = m << _SERIES_GUARD_BITS
    z = (mg - one) * one // (mg + one)
    z2 = z * z // one
    term = z
    total = 0
    n = 1
    while term != 0:
        total += term // n
        term = term * z2 // one
        n += 2
    return _round_guard(2 * total, _SERIES_GUARD_BITS) + k * LN2


def exp(x: int) -> int:
    """Exponential of a fixed-point value."""
    k = x // LN2
    r = x - k * LN2  # r in [0, ln 2)

    one = PRECISION << _SERIES_GUARD_BITS
    rg = r << _SERIES_GUARD_BITS
    term = one
    total = one
    n = 1
    while term != 0:
        term = term * rg // (one * n)
        total += term
        n += 1
    return _round_guard(total, _SERIES_GUARD_BITS - k)


def power(base: int, exponent: int) -> int:
    """base ** exponent for non-negative base and real exponent."""
    if base < 0:
        raise ValueError("power requires a non-negative base")
    if base == 0:
        if exponent <= 0:
            raise ValueError("0 cannot be raised to a non-positive power")
        return 0
    return exp(mul(exponent, ln(base)))


def inverse_phi_power(distance: int) -> int:
    """φ⁻¹ raised to a non-negative fixed-point distance."""
    return exp(-mul(abs(distance), LN_PHI))
