"""
Constraint System Builder

Rank-1 constraint systems over the BN254 scalar field. A ConstraintSystem
accumulates variable allocations and constraints a * b = c (a, b, c linear
combinations) while a circuit is synthesized.

Two synthesis modes share one code path:

    SETUP   shape-only: value providers are never invoked, variables exist
            but carry no assignment. Used to fix the constraint topology
            for parameter generation.
    PROVE   concrete: every provider is invoked once, at allocation time.

The number, role and order of allocations must be identical in both modes.
That ordering is what binds a proving key to the proofs made with it, and
shape_digest() makes it checkable.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union

from vcdisclose.field import FIELD_MODULUS, FieldElement


# =============================================================================
# ERRORS
# =============================================================================

class SynthesisError(Exception):
    """Constraint synthesis failed."""
    pass


class AssignmentMissing(SynthesisError):
    """A variable value was dereferenced but never supplied."""

    def __init__(self, label: str = ""):
        self.label = label
        message = "assignment missing"
        if label:
            message = f"assignment missing for {label}"
        super().__init__(message)


MissingAssignment = AssignmentMissing


# =============================================================================
# VARIABLES AND LINEAR COMBINATIONS
# =============================================================================

class Role(Enum):
    """Visibility of an allocated variable."""
    PUBLIC = "public"
    WITNESS = "witness"


@dataclass(frozen=True)
class Variable:
    """Handle to an allocated variable. Indices are per role."""
    role: Role
    index: int

    def sort_key(self) -> Tuple[int, int]:
        return (0 if self.role is Role.PUBLIC else 1, self.index)


# The constant 1 is public variable 0 in every system.
ONE = Variable(Role.PUBLIC, 0)

Coefficient = Union[int, FieldElement]
Term = Union["LinearCombination", Variable, int, FieldElement]


class LinearCombination:
    """Sparse sum of coefficient * variable. Constants ride on ONE."""

    __slots__ = ("terms",)

    def __init__(self, terms: Optional[Dict[Variable, int]] = None):
        self.terms: Dict[Variable, int] = {}
        for var, coeff in (terms or {}).items():
            coeff %= FIELD_MODULUS
            if coeff:
                self.terms[var] = coeff

    @classmethod
    def zero(cls) -> 'LinearCombination':
        return cls()

    @classmethod
    def constant(cls, value: Coefficient) -> 'LinearCombination':
        return cls({ONE: int(value)})

    @classmethod
    def of(cls, var: Variable, coeff: Coefficient = 1) -> 'LinearCombination':
        return cls({var: int(coeff)})

    @classmethod
    def coerce(cls, value: Term) -> 'LinearCombination':
        if isinstance(value, LinearCombination):
            return value
        if isinstance(value, Variable):
            return cls.of(value)
        if isinstance(value, (int, FieldElement)):
            return cls.constant(value)
        raise TypeError(f"Cannot build a linear combination from {type(value).__name__}")

    @property
    def is_constant(self) -> bool:
        return all(var == ONE for var in self.terms)

    @property
    def constant_value(self) -> int:
        return self.terms.get(ONE, 0)

    def __add__(self, other: Term) -> 'LinearCombination':
        other = LinearCombination.coerce(other)
        terms = dict(self.terms)
        for var, coeff in other.terms.items():
            terms[var] = terms.get(var, 0) + coeff
        return LinearCombination(terms)

    __radd__ = __add__

    def __neg__(self) -> 'LinearCombination':
        return LinearCombination({var: -coeff for var, coeff in self.terms.items()})

    def __sub__(self, other: Term) -> 'LinearCombination':
        return self + (-LinearCombination.coerce(other))

    def __rsub__(self, other: Term) -> 'LinearCombination':
        return LinearCombination.coerce(other) - self

    def __mul__(self, scalar: Coefficient) -> 'LinearCombination':
        if not isinstance(scalar, (int, FieldElement)):
            return NotImplemented
        k = int(scalar)
        return LinearCombination({var: coeff * k for var, coeff in self.terms.items()})

    __rmul__ = __mul__

    def canonical(self) -> List[Tuple[Variable, int]]:
        return sorted(self.terms.items(), key=lambda item: item[0].sort_key())

    def __repr__(self) -> str:
        parts = [f"{c}*{v.role.value}[{v.index}]" for v, c in self.canonical()]
        return "LC(" + " + ".join(parts) + ")" if parts else "LC(0)"


@dataclass(frozen=True)
class Constraint:
    """A single R1CS constraint: a * b = c."""
    a: LinearCombination
    b: LinearCombination
    c: LinearCombination
    label: str = ""


# =============================================================================
# CONSTRAINT SYSTEM
# =============================================================================

class SynthesisMode(Enum):
    """Whether values are materialized during synthesis."""
    SETUP = "setup"
    PROVE = "prove"


ValueProvider = Callable[[], Coefficient]


class ConstraintSystem:
    """
    Append-only collection of variables and constraints.

    Built once per circuit evaluation and read-only afterwards.
    """

    def __init__(self, mode: SynthesisMode = SynthesisMode.PROVE):
        self.mode = mode
        self.constraints: List[Constraint] = []
        self._public_values: List[Optional[int]] = [1]
        self._witness_values: List[Optional[int]] = []
        self._public_labels: List[str] = ["one"]
        self._witness_labels: List[str] = []

    @property
    def is_setup(self) -> bool:
        return self.mode is SynthesisMode.SETUP

    @property
    def num_public(self) -> int:
        """Number of public variables, including the constant ONE."""
        return len(self._public_values)

    @property
    def num_witness(self) -> int:
        return len(self._witness_values)

    @property
    def num_variables(self) -> int:
        return self.num_public + self.num_witness

    @property
    def num_constraints(self) -> int:
        return len(self.constraints)

    def allocate(
        self,
        role: Role,
        value: Optional[ValueProvider] = None,
        label: str = "",
    ) -> Variable:
        """
        Allocate a new variable.

        In SETUP mode the provider is ignored. In PROVE mode it is invoked
        immediately; a missing provider leaves the variable unassigned, which
        is reported as AssignmentMissing when the value is dereferenced.
        """
        assigned: Optional[int] = None
        if self.mode is SynthesisMode.PROVE and value is not None:
            assigned = int(value()) % FIELD_MODULUS

        if role is Role.PUBLIC:
            var = Variable(Role.PUBLIC, len(self._public_values))
            self._public_values.append(assigned)
            self._public_labels.append(label or f"public[{var.index}]")
        else:
            var = Variable(Role.WITNESS, len(self._witness_values))
            self._witness_values.append(assigned)
            self._witness_labels.append(label or f"witness[{var.index}]")
        return var

    def label_of(self, var: Variable) -> str:
        if var.role is Role.PUBLIC:
            return self._public_labels[var.index]
        return self._witness_labels[var.index]

    def assigned_value(self, var: Variable) -> int:
        if var == ONE:
            return 1
        if self.is_setup:
            raise AssignmentMissing(f"{self.label_of(var)} (shape-only synthesis)")
        values = self._public_values if var.role is Role.PUBLIC else self._witness_values
        value = values[var.index]
        if value is None:
            raise AssignmentMissing(self.label_of(var))
        return value

    def value_of(self, lc: Term) -> int:
        """Evaluate a linear combination under the current assignment."""
        lc = LinearCombination.coerce(lc)
        total = 0
        for var, coeff in lc.terms.items():
            total += coeff * self.assigned_value(var)
        return total % FIELD_MODULUS

    def enforce(self, a: Term, b: Term, c: Term, label: str = "") -> None:
        """Add the constraint a * b = c."""
        self.constraints.append(Constraint(
            a=LinearCombination.coerce(a),
            b=LinearCombination.coerce(b),
            c=LinearCombination.coerce(c),
            label=label or f"constraint[{len(self.constraints)}]",
        ))

    def enforce_equal(self, x: Term, y: Term, label: str = "") -> None:
        """Add the constraint (x - y) * 1 = 0."""
        diff = LinearCombination.coerce(x) - LinearCombination.coerce(y)
        self.enforce(diff, ONE, LinearCombination.zero(), label)

    def which_is_unsatisfied(self) -> Optional[str]:
        """Label of the first violated constraint, or None."""
        for constraint in self.constraints:
            a = self.value_of(constraint.a)
            b = self.value_of(constraint.b)
            c = self.value_of(constraint.c)
            if (a * b - c) % FIELD_MODULUS != 0:
                return constraint.label
        return None

    def is_satisfied(self) -> bool:
        return self.which_is_unsatisfied() is None

    def public_assignment(self) -> List[int]:
        """Values of the public variables, ONE first."""
        return [self.assigned_value(Variable(Role.PUBLIC, i)) for i in range(self.num_public)]

    def witness_assignment(self) -> List[int]:
        return [self.assigned_value(Variable(Role.WITNESS, i)) for i in range(self.num_witness)]

    def full_assignment(self) -> List[int]:
        """Public values followed by witness values (the column order of the matrices)."""
        return self.public_assignment() + self.witness_assignment()

    def column(self, var: Variable) -> int:
        if var.role is Role.PUBLIC:
            return var.index
        return self.num_public + var.index

    def matrices(self) -> Tuple[List[List[Tuple[int, int]]], ...]:
        """Sparse A, B, C matrices as rows of (column, coefficient)."""
        a_rows, b_rows, c_rows = [], [], []
        for constraint in self.constraints:
            a_rows.append([(self.column(v), k) for v, k in constraint.a.canonical()])
            b_rows.append([(self.column(v), k) for v, k in constraint.b.canonical()])
            c_rows.append([(self.column(v), k) for v, k in constraint.c.canonical()])
        return a_rows, b_rows, c_rows

    def shape_digest(self) -> str:
        """
        SHA-256 over variable counts and the canonical constraint matrices.

        Independent of assignments: a SETUP and a PROVE synthesis of the same
        circuit shape produce the same digest.
        """
        h = hashlib.sha256()
        h.update(self.num_public.to_bytes(8, "big"))
        h.update(self.num_witness.to_bytes(8, "big"))
        h.update(self.num_constraints.to_bytes(8, "big"))
        for matrix in self.matrices():
            for row in matrix:
                h.update(len(row).to_bytes(4, "big"))
                for col, coeff in row:
                    h.update(col.to_bytes(8, "big"))
                    h.update(coeff.to_bytes(32, "big"))
        return h.hexdigest()

    def to_dict(self) -> Dict[str, object]:
        return {
            "mode": self.mode.value,
            "num_public": self.num_public,
            "num_witness": self.num_witness,
            "num_constraints": self.num_constraints,
            "shape_digest": self.shape_digest(),
        }
