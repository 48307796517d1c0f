"""
Constraint system builder tests.

Run with: pytest tests/test_r1cs.py -v

Copyright (c) 2026 Momentum. All rights reserved.
"""

import pytest

from vcdisclose.field import FIELD_MODULUS, FieldElement
from vcdisclose.r1cs import (
    ONE,
    AssignmentMissing,
    ConstraintSystem,
    LinearCombination,
    MissingAssignment,
    Role,
    SynthesisError,
    SynthesisMode,
    Variable,
)


def _multiply_circuit(cs, x=None, y=None):
    """x * y = z with z public."""
    xv = cs.allocate(Role.WITNESS, (lambda: x) if x is not None else None, "x")
    yv = cs.allocate(Role.WITNESS, (lambda: y) if y is not None else None, "y")
    z = None if x is None or y is None else x * y
    zv = cs.allocate(Role.PUBLIC, (lambda: z) if z is not None else None, "z")
    cs.enforce(xv, yv, zv, "x * y == z")
    return xv, yv, zv


class TestLinearCombination:
    """Tests for sparse linear combinations."""

    def test_constant_folds_onto_one(self):
        lc = LinearCombination.constant(7)
        assert lc.is_constant
        assert lc.constant_value == 7
        assert lc.terms == {ONE: 7}

    def test_zero_terms_dropped(self):
        v = Variable(Role.WITNESS, 0)
        lc = LinearCombination.of(v) - LinearCombination.of(v)
        assert lc.terms == {}
        assert lc.is_constant
        assert lc.constant_value == 0

    def test_coefficients_reduced(self):
        v = Variable(Role.WITNESS, 0)
        lc = LinearCombination.of(v, FIELD_MODULUS + 3)
        assert lc.terms[v] == 3

    def test_arithmetic(self):
        a = Variable(Role.WITNESS, 0)
        b = Variable(Role.PUBLIC, 1)
        lc = (LinearCombination.of(a) * 2 + b + 5) - 1
        assert lc.terms == {a: 2, b: 1, ONE: 4}
        assert (-lc).terms[a] == FIELD_MODULUS - 2

    def test_field_element_scalar(self):
        a = Variable(Role.WITNESS, 0)
        lc = LinearCombination.of(a) * FieldElement(3)
        assert lc.terms == {a: 3}

    def test_coerce_rejects_unknown(self):
        with pytest.raises(TypeError):
            LinearCombination.coerce("x")

    def test_canonical_orders_public_first(self):
        w = Variable(Role.WITNESS, 0)
        p = Variable(Role.PUBLIC, 2)
        lc = LinearCombination.of(w) + LinearCombination.of(p) + 1
        assert [v for v, _ in lc.canonical()] == [ONE, p, w]


class TestConstraintSystem:
    """Tests for allocation, enforcement and satisfaction."""

    def test_one_is_preallocated(self):
        cs = ConstraintSystem()
        assert cs.num_public == 1
        assert cs.num_witness == 0
        assert cs.assigned_value(ONE) == 1

    def test_allocation_indices_per_role(self):
        cs = ConstraintSystem()
        w0 = cs.allocate(Role.WITNESS, lambda: 1)
        p1 = cs.allocate(Role.PUBLIC, lambda: 2)
        w1 = cs.allocate(Role.WITNESS, lambda: 3)
        assert w0 == Variable(Role.WITNESS, 0)
        assert p1 == Variable(Role.PUBLIC, 1)
        assert w1 == Variable(Role.WITNESS, 1)
        assert cs.column(w1) == cs.num_public + 1

    def test_satisfied(self):
        cs = ConstraintSystem()
        _multiply_circuit(cs, 3, 4)
        assert cs.is_satisfied()
        assert cs.which_is_unsatisfied() is None
        assert cs.public_assignment() == [1, 12]
        assert cs.witness_assignment() == [3, 4]
        assert cs.full_assignment() == [1, 12, 3, 4]

    def test_unsatisfied_reports_label(self):
        cs = ConstraintSystem()
        xv = cs.allocate(Role.WITNESS, lambda: 3, "x")
        zv = cs.allocate(Role.PUBLIC, lambda: 10, "z")
        cs.enforce(xv, xv, zv, "square")
        assert not cs.is_satisfied()
        assert cs.which_is_unsatisfied() == "square"

    def test_enforce_equal(self):
        cs = ConstraintSystem()
        a = cs.allocate(Role.WITNESS, lambda: 5)
        b = cs.allocate(Role.PUBLIC, lambda: 5)
        cs.enforce_equal(a, b, "a == b")
        assert cs.is_satisfied()
        constraint = cs.constraints[0]
        assert constraint.b.terms == {ONE: 1}
        assert constraint.c.terms == {}

    def test_enforce_equal_detects_difference(self):
        cs = ConstraintSystem()
        a = cs.allocate(Role.WITNESS, lambda: 5)
        cs.enforce_equal(a, 6, "a == 6")
        assert cs.which_is_unsatisfied() == "a == 6"

    def test_values_reduced(self):
        cs = ConstraintSystem()
        v = cs.allocate(Role.WITNESS, lambda: FIELD_MODULUS + 2)
        assert cs.assigned_value(v) == 2

    def test_default_labels(self):
        cs = ConstraintSystem()
        v = cs.allocate(Role.WITNESS, lambda: 1)
        cs.enforce(v, v, v)
        assert cs.label_of(v) == "witness[0]"
        assert cs.constraints[0].label == "constraint[0]"


class TestSynthesisModes:
    """Tests for shape-only versus concrete synthesis."""

    def test_setup_never_invokes_providers(self):
        calls = []

        def provider():
            calls.append(1)
            return 1

        cs = ConstraintSystem(SynthesisMode.SETUP)
        cs.allocate(Role.WITNESS, provider)
        assert calls == []
        assert cs.is_setup

    def test_prove_invokes_each_provider_once(self):
        calls = []

        def provider():
            calls.append(1)
            return 9

        cs = ConstraintSystem(SynthesisMode.PROVE)
        v = cs.allocate(Role.WITNESS, provider)
        cs.assigned_value(v)
        cs.assigned_value(v)
        assert calls == [1]

    def test_setup_values_missing(self):
        cs = ConstraintSystem(SynthesisMode.SETUP)
        xv, _, _ = _multiply_circuit(cs, 3, 4)
        with pytest.raises(AssignmentMissing):
            cs.assigned_value(xv)
        with pytest.raises(AssignmentMissing):
            cs.full_assignment()

    def test_unassigned_variable_missing(self):
        cs = ConstraintSystem(SynthesisMode.PROVE)
        v = cs.allocate(Role.WITNESS, None, "secret")
        with pytest.raises(AssignmentMissing, match="secret"):
            cs.value_of(LinearCombination.of(v))

    def test_error_hierarchy(self):
        assert MissingAssignment is AssignmentMissing
        assert issubclass(AssignmentMissing, SynthesisError)

    def test_shape_digest_independent_of_mode_and_values(self):
        setup = ConstraintSystem(SynthesisMode.SETUP)
        _multiply_circuit(setup)
        prove_a = ConstraintSystem(SynthesisMode.PROVE)
        _multiply_circuit(prove_a, 3, 4)
        prove_b = ConstraintSystem(SynthesisMode.PROVE)
        _multiply_circuit(prove_b, 5, 6)
        assert setup.shape_digest() == prove_a.shape_digest() == prove_b.shape_digest()

    def test_shape_digest_tracks_topology(self):
        a = ConstraintSystem()
        _multiply_circuit(a, 3, 4)
        b = ConstraintSystem()
        xv, _, _ = _multiply_circuit(b, 3, 4)
        b.enforce_equal(xv, 3)
        assert a.shape_digest() != b.shape_digest()

    def test_matrices(self):
        cs = ConstraintSystem()
        _multiply_circuit(cs, 3, 4)
        a_rows, b_rows, c_rows = cs.matrices()
        # columns: ONE=0, z=1, x=2, y=3
        assert a_rows == [[(2, 1)]]
        assert b_rows == [[(3, 1)]]
        assert c_rows == [[(1, 1)]]

    def test_to_dict(self):
        cs = ConstraintSystem(SynthesisMode.SETUP)
        _multiply_circuit(cs)
        d = cs.to_dict()
        assert d["mode"] == "setup"
        assert d["num_constraints"] == 1
        assert d["num_public"] == 2
        assert d["num_witness"] == 2
