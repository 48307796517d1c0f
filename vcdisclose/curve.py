"""
BN254 Group Helpers

Thin layer over py_ecc.optimized_bn128 (projective coordinates):

    - fixed-base windowed tables for the G1/G2 generators (setup)
    - Pippenger bucket multi-scalar multiplication (prover, verifier)
    - uncompressed affine encoding with on-curve and subgroup checks

Encoding:
    G1:  x || y                         2 x 32 bytes, big-endian
    G2:  x.c0 || x.c1 || y.c0 || y.c1   4 x 32 bytes, big-endian
    The point at infinity is all zero bytes.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, List, Sequence, Tuple

from py_ecc.optimized_bn128 import (
    FQ,
    FQ2,
    G1,
    G2,
    Z1,
    Z2,
    add,
    b,
    b2,
    curve_order,
    double,
    field_modulus,
    is_on_curve,
    multiply,
    normalize,
)

Point = Tuple[Any, Any, Any]

COORD_BYTES = 32
G1_BYTES = 2 * COORD_BYTES
G2_BYTES = 4 * COORD_BYTES


class MalformedPoint(ValueError):
    """Encoded bytes do not describe a valid group element."""
    pass


def is_infinity(pt: Point) -> bool:
    return pt[2] == type(pt[2]).zero()


def points_equal(p1: Point, p2: Point) -> bool:
    """Equality of projective points (cross-multiplied)."""
    if is_infinity(p1) or is_infinity(p2):
        return is_infinity(p1) and is_infinity(p2)
    x1, y1, z1 = p1
    x2, y2, z2 = p2
    return x1 * z2 == x2 * z1 and y1 * z2 == y2 * z1


class FixedBaseTable:
    """
    Windowed table for repeated multiplication of one base point.

    windows[w][d] = d * 16^w * base, so a 254-bit scalar costs at most
    64 additions and no doublings.
    """

    WINDOW_BITS = 4

    def __init__(self, base: Point, zero: Point, scalar_bits: int = 256):
        self.zero = zero
        self.windows: List[List[Point]] = []
        digits = 1 << self.WINDOW_BITS
        current = base
        for _ in range((scalar_bits + self.WINDOW_BITS - 1) // self.WINDOW_BITS):
            row = [zero, current]
            for _ in range(2, digits):
                row.append(add(row[-1], current))
            self.windows.append(row)
            for _ in range(self.WINDOW_BITS):
                current = double(current)

    def mul(self, scalar: int) -> Point:
        scalar %= curve_order
        mask = (1 << self.WINDOW_BITS) - 1
        acc = self.zero
        w = 0
        while scalar:
            digit = scalar & mask
            if digit:
                acc = add(acc, self.windows[w][digit])
            scalar >>= self.WINDOW_BITS
            w += 1
        return acc

    def batch_mul(self, scalars: Sequence[int]) -> List[Point]:
        return [self.mul(s) for s in scalars]


@lru_cache(maxsize=1)
def g1_table() -> FixedBaseTable:
    return FixedBaseTable(G1, Z1)


@lru_cache(maxsize=1)
def g2_table() -> FixedBaseTable:
    return FixedBaseTable(G2, Z2)


def _window_bits(n: int) -> int:
    if n < 4:
        return 2
    return min(12, max(2, n.bit_length() - 2))


def multiexp(points: Sequence[Point], scalars: Sequence[int], zero: Point) -> Point:
    """sum(scalars[i] * points[i]) using the Pippenger bucket method."""
    if len(points) != len(scalars):
        raise ValueError(f"{len(points)} points but {len(scalars)} scalars")

    pairs = []
    for pt, s in zip(points, scalars):
        s %= curve_order
        if s and not is_infinity(pt):
            pairs.append((pt, s))
    if not pairs:
        return zero
    if len(pairs) == 1:
        return multiply(pairs[0][0], pairs[0][1])

    c = _window_bits(len(pairs))
    mask = (1 << c) - 1
    num_bits = max(s.bit_length() for _, s in pairs)

    result = zero
    for shift in reversed(range(0, num_bits, c)):
        if not is_infinity(result):
            for _ in range(c):
                result = double(result)

        buckets: List[Any] = [None] * (mask + 1)
        for pt, s in pairs:
            digit = (s >> shift) & mask
            if digit:
                buckets[digit] = pt if buckets[digit] is None else add(buckets[digit], pt)

        running = zero
        window_sum = zero
        for digit in range(mask, 0, -1):
            if buckets[digit] is not None:
                running = add(running, buckets[digit])
            window_sum = add(window_sum, running)
        result = add(result, window_sum)
    return result


# =============================================================================
# ENCODING
# =============================================================================

def _coord_bytes(n: Any) -> bytes:
    # FQ elements expose .n; FQ2 coefficients may be plain ints
    return int(getattr(n, "n", n)).to_bytes(COORD_BYTES, "big")


def _read_coord(data: bytes, offset: int) -> int:
    value = int.from_bytes(data[offset:offset + COORD_BYTES], "big")
    if value >= field_modulus:
        raise MalformedPoint("coordinate is not a reduced base-field element")
    return value


def g1_to_bytes(pt: Point) -> bytes:
    if is_infinity(pt):
        return bytes(G1_BYTES)
    x, y = normalize(pt)
    return _coord_bytes(x) + _coord_bytes(y)


def g2_to_bytes(pt: Point) -> bytes:
    if is_infinity(pt):
        return bytes(G2_BYTES)
    x, y = normalize(pt)
    return b"".join(_coord_bytes(c) for c in (*x.coeffs, *y.coeffs))


def g1_from_bytes(data: bytes) -> Point:
    if len(data) != G1_BYTES:
        raise MalformedPoint(f"G1 encoding must be {G1_BYTES} bytes, got {len(data)}")
    if not any(data):
        return Z1
    pt = (FQ(_read_coord(data, 0)), FQ(_read_coord(data, COORD_BYTES)), FQ.one())
    if not is_on_curve(pt, b):
        raise MalformedPoint("G1 point is not on the curve")
    return pt


def g2_from_bytes(data: bytes) -> Point:
    if len(data) != G2_BYTES:
        raise MalformedPoint(f"G2 encoding must be {G2_BYTES} bytes, got {len(data)}")
    if not any(data):
        return Z2
    c = [_read_coord(data, i * COORD_BYTES) for i in range(4)]
    pt = (FQ2([c[0], c[1]]), FQ2([c[2], c[3]]), FQ2.one())
    if not is_valid_g2(pt):
        raise MalformedPoint("G2 point is not in the prime-order subgroup")
    return pt


def is_valid_g1(pt: Point) -> bool:
    # G1 has cofactor 1: on-curve is sufficient.
    return is_on_curve(pt, b)


def is_valid_g2(pt: Point) -> bool:
    if not is_on_curve(pt, b2):
        return False
    return is_infinity(multiply(pt, curve_order))
