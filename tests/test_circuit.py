"""
Gadget and commitment-opening circuit tests.

The constrained sponge must reproduce the native sponge exactly, and the
circuit must allocate the same topology with or without values.

Run with: pytest tests/test_circuit.py -v

Copyright (c) 2026 Momentum. All rights reserved.
"""

from dataclasses import replace

import pytest

from vcdisclose.circuit import (
    CIRCUIT_ID,
    CircuitConfigurationError,
    CommitmentOpeningCircuit,
    DisclosureSchema,
    reference_schema,
)
from vcdisclose.field import FIELD_MODULUS, FieldElement, encode_attributes
from vcdisclose.gadgets import FieldVar, PoseidonSpongeVar, linear_mix
from vcdisclose.r1cs import AssignmentMissing, ConstraintSystem, Role, SynthesisMode, Variable
from vcdisclose.sponge import commit, derive_config, reference_config

ATTRIBUTES = ["Lukas", "Financial Technologies", "Vilnius", "2025"]


def _witnesses(cs, values):
    return [FieldVar.witness(cs, (lambda v=v: int(v)), f"w[{i}]") for i, v in enumerate(values)]


def _concrete(attributes=ATTRIBUTES, config=None, schema=None):
    config = config or reference_config()
    schema = schema or reference_schema()
    encoded = encode_attributes(attributes)
    return CommitmentOpeningCircuit.concrete(
        attributes=encoded,
        commitment=commit(encoded, config),
        disclosed=[encoded[p] for p in schema.disclosed_positions],
        config=config,
        schema=schema,
    )


# =============================================================================
# GADGETS
# =============================================================================

class TestFieldVar:
    """Tests for constrained field arithmetic."""

    def test_constant_folding_costs_nothing(self):
        cs = ConstraintSystem()
        a = FieldVar.constant(cs, 3)
        b = FieldVar.constant(cs, 4)
        c = (a * b + 1).pow(5)
        assert c.is_constant
        assert c.value == pow(13, 5, FIELD_MODULUS)
        assert cs.num_constraints == 0

    def test_scaling_is_linear(self):
        cs = ConstraintSystem()
        x = FieldVar.witness(cs, lambda: 6)
        y = x * 7 + 2
        assert cs.num_constraints == 0
        assert y.value == 44

    def test_product_allocates_one_constraint(self):
        cs = ConstraintSystem()
        x = FieldVar.witness(cs, lambda: 6)
        y = FieldVar.witness(cs, lambda: 7)
        z = x * y
        assert cs.num_constraints == 1
        assert z.value == 42
        assert cs.is_satisfied()

    def test_pow_cost(self):
        cs = ConstraintSystem()
        x = FieldVar.witness(cs, lambda: 3)
        y = x.pow(5)
        # x^2, x^4, x^5
        assert cs.num_constraints == 3
        assert y.value == 243
        assert cs.is_satisfied()

    def test_pow_rejects_zero_exponent(self):
        cs = ConstraintSystem()
        with pytest.raises(ValueError):
            FieldVar.witness(cs, lambda: 3).pow(0)

    def test_subtraction_and_negation(self):
        cs = ConstraintSystem()
        x = FieldVar.witness(cs, lambda: 5)
        assert (10 - x).value == 5
        assert (-x).value == FIELD_MODULUS - 5

    def test_enforce_equal(self):
        cs = ConstraintSystem()
        x = FieldVar.witness(cs, lambda: 5)
        x.enforce_equal(5, label="x == 5")
        x.enforce_equal(6, label="x == 6")
        assert cs.which_is_unsatisfied() == "x == 6"

    def test_linear_mix(self):
        cs = ConstraintSystem()
        state = _witnesses(cs, [1, 2, 3])
        mixed = linear_mix([2, 0, 5], state)
        assert mixed.value == 17
        assert cs.num_constraints == 0

    def test_value_missing_in_setup(self):
        cs = ConstraintSystem(SynthesisMode.SETUP)
        x = FieldVar.witness(cs, lambda: 5, "x")
        with pytest.raises(AssignmentMissing):
            x.value


class TestPoseidonSpongeVar:
    """Tests for the constrained sponge against the native sponge."""

    @pytest.mark.parametrize("config_factory", [
        reference_config,
        lambda: derive_config(partial_rounds=31, seed=b"circuit-test"),
    ])
    def test_matches_native_commitment(self, config_factory):
        config = config_factory()
        values = encode_attributes(ATTRIBUTES)
        cs = ConstraintSystem()
        sponge = PoseidonSpongeVar(cs, config)
        sponge.absorb(_witnesses(cs, values))
        digest = sponge.squeeze(1)[0]
        assert digest.value == commit(values, config).value
        assert cs.is_satisfied()

    def test_multi_squeeze_matches_native(self):
        from vcdisclose.sponge import PoseidonSponge

        config = derive_config(partial_rounds=10)
        values = [11, 22, 33]
        native = PoseidonSponge(config)
        native.absorb(values)
        expected = [e.value for e in native.squeeze(3)]

        cs = ConstraintSystem()
        sponge = PoseidonSpongeVar(cs, config)
        sponge.absorb(_witnesses(cs, values))
        assert [v.value for v in sponge.squeeze(3)] == expected

    def test_digest_depends_on_witnesses(self):
        cs = ConstraintSystem()
        sponge = PoseidonSpongeVar(cs, reference_config())
        sponge.absorb(_witnesses(cs, [1, 2, 3, 4]))
        digest = sponge.squeeze(1)[0]
        assert not digest.is_constant

    def test_reference_cost(self):
        cs = ConstraintSystem(SynthesisMode.SETUP)
        sponge = PoseidonSpongeVar(cs, reference_config())
        sponge.absorb(_witnesses(cs, [1, 2, 3, 4]))
        sponge.squeeze(1)
        # 3 constraints per S-box. The first round of the first permutation
        # leaves the capacity lane constant: 2 * 3 + 7 * 9 + 57 * 3 = 240.
        # The second permutation has no constant lane: 8 * 9 + 57 * 3 = 243.
        assert cs.num_constraints == 240 + 243

    def test_setup_and_prove_same_shape(self):
        config = derive_config(partial_rounds=10)
        setup = ConstraintSystem(SynthesisMode.SETUP)
        s1 = PoseidonSpongeVar(setup, config)
        s1.absorb(_witnesses(setup, [0, 0, 0, 0]))
        s1.squeeze(1)
        prove = ConstraintSystem(SynthesisMode.PROVE)
        s2 = PoseidonSpongeVar(prove, config)
        s2.absorb(_witnesses(prove, [5, 6, 7, 8]))
        s2.squeeze(1)
        assert setup.shape_digest() == prove.shape_digest()


# =============================================================================
# CIRCUIT
# =============================================================================

class TestDisclosureSchema:
    """Tests for disclosure schema validation."""

    def test_reference(self):
        schema = reference_schema()
        assert schema.witness_count == 4
        assert schema.disclosed_positions == (1,)
        assert schema.public_input_names() == ["commitment", "disclosed[1]"]

    def test_positions_normalized_to_tuple(self):
        assert DisclosureSchema(4, [0, 2]).disclosed_positions == (0, 2)

    @pytest.mark.parametrize("schema", [
        DisclosureSchema(0, ()),
        DisclosureSchema(4, (4,)),
        DisclosureSchema(4, (-1,)),
        DisclosureSchema(4, (1, 1)),
        DisclosureSchema(4, (True,)),
        DisclosureSchema(4, (1.0,)),
        DisclosureSchema(True, ()),
    ])
    def test_invalid(self, schema):
        with pytest.raises(CircuitConfigurationError):
            schema.validate()

    def test_no_disclosure_allowed(self):
        schema = DisclosureSchema(4, ())
        schema.validate()
        assert schema.public_input_names() == ["commitment"]


class TestCommitmentOpeningCircuit:
    """Tests for the commitment-opening predicate."""

    def test_concrete_satisfied(self):
        circuit = _concrete()
        cs = ConstraintSystem(SynthesisMode.PROVE)
        circuit.synthesize(cs)
        assert cs.is_satisfied()
        assert cs.num_public == 3
        assert cs.public_assignment()[1:] == [v.value for v in circuit.public_inputs()]

    def test_allocation_order(self):
        cs = ConstraintSystem(SynthesisMode.SETUP)
        CommitmentOpeningCircuit.shape_only().synthesize(cs)
        witnesses = [cs.label_of(Variable(Role.WITNESS, i)) for i in range(4)]
        publics = [cs.label_of(Variable(Role.PUBLIC, i)) for i in range(1, cs.num_public)]
        assert witnesses == [f"attribute[{i}]" for i in range(4)]
        assert publics == ["commitment", "disclosed[1]"]

    def test_constraint_labels(self):
        cs = ConstraintSystem(SynthesisMode.SETUP)
        CommitmentOpeningCircuit.shape_only().synthesize(cs)
        labels = [c.label for c in cs.constraints]
        assert labels[-2:] == ["digest == commitment", "attribute[1] == disclosed[1]"]

    def test_shape_only_and_concrete_same_topology(self):
        setup = ConstraintSystem(SynthesisMode.SETUP)
        CommitmentOpeningCircuit.shape_only().synthesize(setup)
        prove = ConstraintSystem(SynthesisMode.PROVE)
        _concrete().synthesize(prove)
        assert setup.num_constraints == prove.num_constraints
        assert setup.num_witness == prove.num_witness
        assert setup.shape_digest() == prove.shape_digest()

    def test_shape_independent_of_attribute_values(self):
        a = ConstraintSystem()
        _concrete().synthesize(a)
        b = ConstraintSystem()
        _concrete(["x", "y", "z", "w"]).synthesize(b)
        assert a.shape_digest() == b.shape_digest()

    def test_shape_only_in_prove_mode_raises(self):
        cs = ConstraintSystem(SynthesisMode.PROVE)
        with pytest.raises(AssignmentMissing, match="attribute"):
            CommitmentOpeningCircuit.shape_only().synthesize(cs)

    def test_public_inputs_missing_for_shape(self):
        with pytest.raises(AssignmentMissing):
            CommitmentOpeningCircuit.shape_only().public_inputs()

    def test_tampered_attribute_unsatisfied(self):
        honest = _concrete()
        tampered_attrs = list(honest.attributes)
        tampered_attrs[3] = encode_attributes(["2024"])[0]
        tampered = replace(honest, attributes=tuple(tampered_attrs))
        cs = ConstraintSystem()
        tampered.synthesize(cs)
        assert cs.which_is_unsatisfied() == "digest == commitment"

    @pytest.mark.parametrize("position", range(4))
    def test_single_bit_flip_in_attribute_unsatisfied(self, position):
        honest = _concrete()
        attrs = list(honest.attributes)
        attrs[position] = FieldElement(attrs[position].value ^ 1)
        cs = ConstraintSystem()
        replace(honest, attributes=tuple(attrs)).synthesize(cs)
        assert cs.which_is_unsatisfied() == "digest == commitment"

    def test_single_bit_flip_in_identifier_unsatisfied(self):
        honest = _concrete()
        flipped = FieldElement(honest.disclosed[0].value ^ 1)
        cs = ConstraintSystem()
        replace(honest, disclosed=(flipped,)).synthesize(cs)
        assert cs.which_is_unsatisfied() == "attribute[1] == disclosed[1]"

    def test_wrong_disclosed_value_unsatisfied(self):
        honest = _concrete()
        wrong = replace(honest, disclosed=(FieldElement(12345),))
        cs = ConstraintSystem()
        wrong.synthesize(cs)
        assert cs.which_is_unsatisfied() == "attribute[1] == disclosed[1]"

    def test_wrong_commitment_unsatisfied(self):
        honest = _concrete()
        wrong = replace(honest, commitment=honest.commitment + FieldElement.one())
        cs = ConstraintSystem()
        wrong.synthesize(cs)
        assert cs.which_is_unsatisfied() == "digest == commitment"

    def test_multiple_disclosures(self):
        schema = DisclosureSchema(4, (0, 3))
        circuit = _concrete(schema=schema)
        cs = ConstraintSystem()
        circuit.synthesize(cs)
        assert cs.is_satisfied()
        assert circuit.public_input_names() == ["commitment", "disclosed[0]", "disclosed[3]"]

    def test_attribute_count_checked(self):
        with pytest.raises(CircuitConfigurationError):
            CommitmentOpeningCircuit.concrete(
                attributes=encode_attributes(["a", "b", "c"]),
                commitment=FieldElement.zero(),
                disclosed=[FieldElement.zero()],
            )

    def test_disclosed_count_checked(self):
        with pytest.raises(CircuitConfigurationError):
            CommitmentOpeningCircuit.concrete(
                attributes=encode_attributes(ATTRIBUTES),
                commitment=FieldElement.zero(),
                disclosed=[],
            )

    def test_invalid_sponge_rejected_at_construction(self):
        with pytest.raises(CircuitConfigurationError, match="sponge"):
            CommitmentOpeningCircuit.shape_only(config=replace(reference_config(), rate=0))

    def test_invalid_schema_rejected_at_construction(self):
        with pytest.raises(CircuitConfigurationError):
            CommitmentOpeningCircuit.shape_only(schema=DisclosureSchema(4, (7,)))

    def test_digest_identifies_shape(self):
        assert _concrete().digest == CommitmentOpeningCircuit.shape_only().digest
        assert CommitmentOpeningCircuit.shape_only(config=derive_config()).digest != _concrete().digest

    def test_to_dict(self):
        d = CommitmentOpeningCircuit.shape_only().to_dict()
        assert d["circuit_id"] == CIRCUIT_ID
        assert d["shape_only"] is True
        assert d["public_input_names"] == ["commitment", "disclosed[1]"]
