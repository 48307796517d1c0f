"""
Protocol

Three-phase orchestration of the commitment-opening proof:

    setup(shape)            -> KeyPair            (SETUP-mode synthesis)
    prove(circuit, pk)      -> Proof              (PROVE-mode synthesis)
    verify(proof, x, pvk)   -> bool

Every phase is a function of its explicit inputs. Keys are immutable values
handed from phase to phase; nothing is cached at module level. Randomness
defaults to secrets.SystemRandom and may be replaced by any object with a
randrange(start, stop) method.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from vcdisclose.circuit import CommitmentOpeningCircuit, DisclosureSchema, reference_schema
from vcdisclose.config import get_config
from vcdisclose.field import Attribute, FieldElement, encode_attribute, encode_attributes
from vcdisclose.groth16 import (
    PreparedVerifyingKey,
    Proof,
    ProvingKey,
    VerifyingKey,
    create_proof,
    generate_parameters,
    prepare_verifying_key,
    verify_proof,
)
from vcdisclose.hardening import CryptoUtils, Validators
from vcdisclose.observability import Layer, get_logger, timed_operation
from vcdisclose.r1cs import ConstraintSystem, SynthesisError, SynthesisMode
from vcdisclose.sponge import PoseidonConfig, commit, reference_config

logger = get_logger("protocol", Layer.PROTOCOL)


class CircuitMismatch(ValueError):
    """The circuit being proved does not have the proving key's topology."""
    pass


class UnsatisfiedConstraints(SynthesisError):
    """The concrete assignment violates a constraint (strict proving only)."""

    def __init__(self, label: str):
        self.label = label
        super().__init__(f"constraint not satisfied: {label}")


@dataclass(frozen=True, eq=False)
class KeyPair:
    proving_key: ProvingKey
    verifying_key: VerifyingKey


def _default_rng() -> Any:
    return secrets.SystemRandom()


# =============================================================================
# PHASES
# =============================================================================

@timed_operation(logger, "setup")
def setup(circuit: CommitmentOpeningCircuit, rng: Optional[Any] = None) -> KeyPair:
    """
    Generate keys for the circuit's topology.

    Values carried by circuit, if any, are ignored: synthesis runs in SETUP
    mode and never asks for an assignment.
    """
    cs = ConstraintSystem(SynthesisMode.SETUP)
    circuit.synthesize(cs)
    logger.info(
        "Synthesized circuit shape",
        operation="setup",
        constraints=cs.num_constraints,
        public_inputs=cs.num_public - 1,
        witnesses=cs.num_witness,
    )
    pk = generate_parameters(cs, rng or _default_rng())
    return KeyPair(proving_key=pk, verifying_key=pk.vk)


def prepare(vk: VerifyingKey) -> PreparedVerifyingKey:
    return prepare_verifying_key(vk)


@timed_operation(logger, "prove")
def prove(
    circuit: CommitmentOpeningCircuit,
    proving_key: ProvingKey,
    rng: Optional[Any] = None,
    strict: Optional[bool] = None,
    check_shape: Optional[bool] = None,
) -> Proof:
    """
    Prove that circuit's values satisfy its constraints.

    Raises AssignmentMissing for a shape-only circuit and CircuitMismatch
    when the synthesized topology is not the one the key was made for. An
    unsatisfied assignment still yields a proof (which will not verify)
    unless strict proving is enabled.
    """
    prover_config = get_config().prover
    strict = prover_config.strict.get() if strict is None else strict
    check_shape = prover_config.check_shape.get() if check_shape is None else check_shape

    cs = ConstraintSystem(SynthesisMode.PROVE)
    circuit.synthesize(cs)

    if check_shape and not CryptoUtils.secure_compare_str(
        cs.shape_digest(), proving_key.shape_digest
    ):
        raise CircuitMismatch(
            f"circuit {circuit.digest[:16]} does not match the proving key's constraint system"
        )

    failing = cs.which_is_unsatisfied()
    if failing is not None:
        logger.warning(
            "Assignment does not satisfy the circuit",
            operation="prove",
            constraint=failing,
        )
        if strict:
            raise UnsatisfiedConstraints(failing)

    return create_proof(cs, proving_key, rng or _default_rng())


@timed_operation(logger, "verify")
def verify(
    proof: Proof,
    public_inputs: Sequence[Union[FieldElement, int]],
    key: Union[PreparedVerifyingKey, VerifyingKey],
) -> bool:
    """
    Check proof against public inputs in declaration order
    (commitment, then disclosed values).

    Raises MalformedPublicInput when the inputs do not fit the key's schema.
    """
    pvk = key if isinstance(key, PreparedVerifyingKey) else prepare_verifying_key(key)
    valid = verify_proof(pvk, proof, public_inputs)
    logger.info("Verified proof", operation="verify", valid=valid, proof=proof.digest[:16])
    return valid


# =============================================================================
# STATEMENT
# =============================================================================

@dataclass(frozen=True)
class CredentialStatement:
    """
    Encoded attributes together with the public values they imply.

    Built from raw attributes; the commitment and disclosed values are
    computed with the same encoding and sponge the circuit uses.
    """
    attributes: Tuple[FieldElement, ...]
    commitment: FieldElement
    disclosed: Tuple[FieldElement, ...]
    config: PoseidonConfig = field(default_factory=reference_config)
    schema: DisclosureSchema = field(default_factory=reference_schema)

    @classmethod
    def from_attributes(
        cls,
        attributes: Sequence[Attribute],
        config: Optional[PoseidonConfig] = None,
        schema: Optional[DisclosureSchema] = None,
    ) -> 'CredentialStatement':
        config = config or reference_config()
        schema = schema or reference_schema()
        config.validate()
        schema.validate()

        result = Validators.validate_attributes(attributes, schema.witness_count)
        for warning in result.warnings:
            logger.warning(warning, operation="encode_attributes")
        result.raise_if_invalid()

        encoded = encode_attributes(result.sanitized_value)
        return cls(
            attributes=tuple(encoded),
            commitment=commit(encoded, config),
            disclosed=tuple(encoded[pos] for pos in schema.disclosed_positions),
            config=config,
            schema=schema,
        )

    def circuit(self) -> CommitmentOpeningCircuit:
        return CommitmentOpeningCircuit.concrete(
            attributes=self.attributes,
            commitment=self.commitment,
            disclosed=self.disclosed,
            config=self.config,
            schema=self.schema,
        )

    def shape(self) -> CommitmentOpeningCircuit:
        return CommitmentOpeningCircuit.shape_only(config=self.config, schema=self.schema)

    def public_inputs(self) -> List[FieldElement]:
        return [self.commitment, *self.disclosed]

    def substitute_attribute(self, position: int, value: Attribute) -> 'CredentialStatement':
        """
        Same public values, one private attribute replaced. The result is a
        statement the prover cannot honestly prove.
        """
        if not 0 <= position < len(self.attributes):
            raise IndexError(f"attribute position {position} out of range")
        attributes = list(self.attributes)
        attributes[position] = encode_attribute(value)
        return replace(self, attributes=tuple(attributes))

    def to_dict(self) -> Dict[str, Any]:
        """Public part of the statement; private attributes are omitted."""
        return {
            "commitment": self.commitment.to_hex(),
            "disclosed": {
                str(pos): value.to_hex()
                for pos, value in zip(self.schema.disclosed_positions, self.disclosed)
            },
            "schema": self.schema.to_dict(),
            "sponge_digest": self.config.digest(),
        }
