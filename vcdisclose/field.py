"""
Field Encoding

Scalar-field elements of BN254 and the canonical mapping from attribute bytes
into the field. The same encoding is used when the holder computes the public
commitment and when a verifier derives a public identifier, so any divergence
between the two call sites shows up only as a rejected proof.

Encoding:
    encode_attribute(b) = int.from_bytes(b, "little") mod r

    where r is the BN254 scalar field order (the group order of G1/G2).

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Union

from py_ecc.optimized_bn128 import curve_order

# BN254 scalar field order (Fr)
FIELD_MODULUS: int = curve_order

FIELD_BYTES: int = 32


@dataclass(frozen=True)
class FieldElement:
    """
    Element of the BN254 scalar field.

    Always holds the canonical representative in [0, FIELD_MODULUS).
    Arithmetic is performed modulo FIELD_MODULUS.
    """
    value: int

    def __post_init__(self):
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise TypeError("Field element value must be an int")
        if not 0 <= self.value < FIELD_MODULUS:
            raise ValueError("Field element must be reduced modulo the field order")

    @classmethod
    def zero(cls) -> 'FieldElement':
        return cls(0)

    @classmethod
    def one(cls) -> 'FieldElement':
        return cls(1)

    @classmethod
    def from_int(cls, n: int) -> 'FieldElement':
        """Create a field element from an integer, reducing modulo FIELD_MODULUS."""
        return cls(n % FIELD_MODULUS)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'FieldElement':
        """Decode a canonical 32-byte little-endian representation."""
        if len(data) != FIELD_BYTES:
            raise ValueError(f"Expected {FIELD_BYTES} bytes, got {len(data)}")
        return cls(int.from_bytes(data, "little"))

    @classmethod
    def from_hex(cls, value: str) -> 'FieldElement':
        return cls(int(value, 16))

    def to_int(self) -> int:
        return self.value

    def to_bytes(self) -> bytes:
        return self.value.to_bytes(FIELD_BYTES, "little")

    def to_hex(self) -> str:
        return format(self.value, '064x')

    def __int__(self) -> int:
        return self.value

    def __add__(self, other: 'FieldElement') -> 'FieldElement':
        return FieldElement((self.value + other.value) % FIELD_MODULUS)

    def __sub__(self, other: 'FieldElement') -> 'FieldElement':
        return FieldElement((self.value - other.value) % FIELD_MODULUS)

    def __mul__(self, other: 'FieldElement') -> 'FieldElement':
        return FieldElement((self.value * other.value) % FIELD_MODULUS)

    def __neg__(self) -> 'FieldElement':
        return FieldElement((-self.value) % FIELD_MODULUS)

    def inverse(self) -> 'FieldElement':
        """Compute modular multiplicative inverse using Fermat's little theorem."""
        if self.value == 0:
            raise ZeroDivisionError("Cannot invert zero field element")
        return FieldElement(pow(self.value, FIELD_MODULUS - 2, FIELD_MODULUS))

    def __truediv__(self, other: 'FieldElement') -> 'FieldElement':
        return self * other.inverse()

    def __pow__(self, exponent: int) -> 'FieldElement':
        return FieldElement(pow(self.value, exponent, FIELD_MODULUS))

    def __repr__(self) -> str:
        return f"FieldElement(0x{self.to_hex()})"


Attribute = Union[bytes, bytearray, str]


def encode_attribute(data: Attribute) -> FieldElement:
    """
    Map an attribute to the field.

    The bytes are read as a little-endian integer and reduced modulo the
    field order. Strings are UTF-8 encoded first. Total and deterministic.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return FieldElement(int.from_bytes(bytes(data), "little") % FIELD_MODULUS)


def encode_attributes(attributes: Iterable[Attribute]) -> List[FieldElement]:
    """Encode an ordered attribute list."""
    return [encode_attribute(a) for a in attributes]
