"""
Circuit Gadgets

Field-valued variables with constant folding, and the constraint-level
Poseidon sponge. PoseidonSpongeVar mirrors sponge.PoseidonSponge step for
step: round constants and MDS mixing are linear and cost nothing, every S-box
on a non-constant lane costs one constraint per multiplication. The squeezed
digest is therefore bound to the absorbed variables by the permutation
algebra itself, not by a re-witnessed value.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Union

from vcdisclose.field import FIELD_MODULUS, FieldElement
from vcdisclose.r1cs import (
    ConstraintSystem,
    LinearCombination,
    Role,
    ValueProvider,
)
from vcdisclose.sponge import PoseidonConfig


Operand = Union["FieldVar", int, FieldElement]


class FieldVar:
    """
    A field-valued expression inside a constraint system.

    Wraps a linear combination. Products of two non-constant vars allocate a
    fresh witness and one constraint; everything else is folded.
    """

    __slots__ = ("cs", "lc")

    def __init__(self, cs: ConstraintSystem, lc: LinearCombination):
        self.cs = cs
        self.lc = lc

    @classmethod
    def constant(cls, cs: ConstraintSystem, value: Union[int, FieldElement]) -> 'FieldVar':
        return cls(cs, LinearCombination.constant(value))

    @classmethod
    def witness(
        cls,
        cs: ConstraintSystem,
        value: Optional[ValueProvider],
        label: str = "",
    ) -> 'FieldVar':
        return cls(cs, LinearCombination.of(cs.allocate(Role.WITNESS, value, label)))

    @classmethod
    def public(
        cls,
        cs: ConstraintSystem,
        value: Optional[ValueProvider],
        label: str = "",
    ) -> 'FieldVar':
        return cls(cs, LinearCombination.of(cs.allocate(Role.PUBLIC, value, label)))

    @property
    def is_constant(self) -> bool:
        return self.lc.is_constant

    @property
    def value(self) -> int:
        """Current assignment. Raises AssignmentMissing during shape-only synthesis."""
        if self.is_constant:
            return self.lc.constant_value
        return self.cs.value_of(self.lc)

    def _coerce(self, other: Operand) -> 'FieldVar':
        if isinstance(other, FieldVar):
            return other
        return FieldVar.constant(self.cs, other)

    def __add__(self, other: Operand) -> 'FieldVar':
        return FieldVar(self.cs, self.lc + self._coerce(other).lc)

    __radd__ = __add__

    def __sub__(self, other: Operand) -> 'FieldVar':
        return FieldVar(self.cs, self.lc - self._coerce(other).lc)

    def __rsub__(self, other: Operand) -> 'FieldVar':
        return FieldVar(self.cs, self._coerce(other).lc - self.lc)

    def __neg__(self) -> 'FieldVar':
        return FieldVar(self.cs, -self.lc)

    def __mul__(self, other: Operand) -> 'FieldVar':
        other = self._coerce(other)
        if other.is_constant:
            return FieldVar(self.cs, self.lc * other.lc.constant_value)
        if self.is_constant:
            return FieldVar(self.cs, other.lc * self.lc.constant_value)

        left, right = self, other
        product = FieldVar.witness(
            self.cs,
            lambda: left.value * right.value % FIELD_MODULUS,
            label="product",
        )
        self.cs.enforce(left.lc, right.lc, product.lc, label="product")
        return product

    __rmul__ = __mul__

    def square(self) -> 'FieldVar':
        return self * self

    def pow(self, exponent: int) -> 'FieldVar':
        """Left-to-right square-and-multiply; exponent >= 1."""
        if exponent < 1:
            raise ValueError("exponent must be >= 1")
        if self.is_constant:
            return FieldVar.constant(
                self.cs, pow(self.lc.constant_value, exponent, FIELD_MODULUS)
            )
        acc = self
        for bit in bin(exponent)[3:]:
            acc = acc.square()
            if bit == "1":
                acc = acc * self
        return acc

    def enforce_equal(self, other: Operand, label: str = "") -> None:
        self.cs.enforce_equal(self.lc, self._coerce(other).lc, label)


def linear_mix(row: Sequence[int], state: Sequence[FieldVar]) -> FieldVar:
    """sum(row[j] * state[j]) as a single linear combination."""
    lc = LinearCombination.zero()
    for coeff, var in zip(row, state):
        if coeff:
            lc = lc + var.lc * coeff
    return FieldVar(state[0].cs, lc)


class PoseidonSpongeVar:
    """Constraint-level duplex sponge, schedule-identical to PoseidonSponge."""

    def __init__(self, cs: ConstraintSystem, config: PoseidonConfig):
        config.validate()
        self.cs = cs
        self.config = config
        self.state: List[FieldVar] = [FieldVar.constant(cs, 0) for _ in range(config.width)]
        self._absorbing = True
        self._index = 0

    def permute(self) -> None:
        config = self.config
        half = config.full_rounds // 2
        state = self.state
        for r in range(config.total_rounds):
            state = [s + c for s, c in zip(state, config.ark[r])]
            if r < half or r >= half + config.partial_rounds:
                state = [s.pow(config.alpha) for s in state]
            else:
                state[0] = state[0].pow(config.alpha)
            state = [linear_mix(row, state) for row in config.mds]
        self.state = state

    def absorb(self, elements: Iterable[FieldVar]) -> None:
        elements = list(elements)
        if not elements:
            return

        if self._absorbing:
            if self._index == self.config.rate:
                self.permute()
                self._index = 0
        else:
            self.permute()
            self._absorbing = True
            self._index = 0

        for element in elements:
            if self._index == self.config.rate:
                self.permute()
                self._index = 0
            lane = self.config.capacity + self._index
            self.state[lane] = self.state[lane] + element
            self._index += 1

    def squeeze(self, n: int = 1) -> List[FieldVar]:
        if n < 0:
            raise ValueError("cannot squeeze a negative number of elements")
        if n == 0:
            return []

        if self._absorbing:
            self.permute()
            self._absorbing = False
            self._index = 0

        out: List[FieldVar] = []
        for _ in range(n):
            if self._index == self.config.rate:
                self.permute()
                self._index = 0
            out.append(self.state[self.config.capacity + self._index])
            self._index += 1
        return out
