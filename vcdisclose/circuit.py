"""
Circuit Definition

Commitment-opening predicate with selective disclosure:

    Private:  a_0, ..., a_{n-1}            (encoded credential attributes)
    Public:   C                            (sponge commitment)
              d_k for k in disclosed       (disclosed attribute values)

    Constraints:
        Poseidon(a_0, ..., a_{n-1}) == C   (sponge fully arithmetized)
        a_k == d_k                         for every disclosed position k

The same CommitmentOpeningCircuit type is synthesized twice: shape-only
(every value absent) to fix the topology for setup, and concrete to prove.
Allocation order is fixed and value-independent:

    witnesses a_0..a_{n-1} -> public C -> public d_k (schema order)
    -> sponge sub-computation -> equality constraints

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from vcdisclose.field import FieldElement
from vcdisclose.gadgets import FieldVar, PoseidonSpongeVar
from vcdisclose.r1cs import AssignmentMissing, ConstraintSystem
from vcdisclose.sponge import PoseidonConfig, SpongeParameterError, reference_config

CIRCUIT_ID = "vc.commitment_opening.v1"


class CircuitConfigurationError(ValueError):
    """Circuit parameters are inconsistent; raised at construction time."""
    pass


def _is_position(x: Any) -> bool:
    return isinstance(x, int) and not isinstance(x, bool)


@dataclass(frozen=True)
class DisclosureSchema:
    """
    Which attributes exist and which of them are disclosed.

    The reference credential has four attributes with the second one
    (index 1) disclosed as the public identifier.
    """
    witness_count: int = 4
    disclosed_positions: Tuple[int, ...] = (1,)

    def __post_init__(self):
        object.__setattr__(self, "disclosed_positions", tuple(self.disclosed_positions))

    def validate(self) -> None:
        if not _is_position(self.witness_count) or self.witness_count < 1:
            raise CircuitConfigurationError(
                f"witness_count must be >= 1, got {self.witness_count}"
            )
        seen = set()
        for pos in self.disclosed_positions:
            if not _is_position(pos) or not 0 <= pos < self.witness_count:
                raise CircuitConfigurationError(
                    f"disclosed position {pos!r} outside 0..{self.witness_count - 1}"
                )
            if pos in seen:
                raise CircuitConfigurationError(f"disclosed position {pos} listed twice")
            seen.add(pos)

    def public_input_names(self) -> List[str]:
        return ["commitment"] + [f"disclosed[{pos}]" for pos in self.disclosed_positions]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "witness_count": self.witness_count,
            "disclosed_positions": list(self.disclosed_positions),
        }


def reference_schema() -> DisclosureSchema:
    return DisclosureSchema(witness_count=4, disclosed_positions=(1,))


def _assignment(value: Optional[FieldElement], label: str) -> Callable[[], int]:
    def provide() -> int:
        if value is None:
            raise AssignmentMissing(label)
        return value.value
    return provide


@dataclass(frozen=True)
class CommitmentOpeningCircuit:
    """
    A circuit instance.

    Values are optional: a shape-only instance carries None everywhere, a
    concrete instance carries every attribute, the commitment and the
    disclosed values. Parameters are validated eagerly.
    """
    attributes: Tuple[Optional[FieldElement], ...]
    commitment: Optional[FieldElement]
    disclosed: Tuple[Optional[FieldElement], ...]
    config: PoseidonConfig = field(default_factory=reference_config)
    schema: DisclosureSchema = field(default_factory=reference_schema)

    def __post_init__(self):
        object.__setattr__(self, "attributes", tuple(self.attributes))
        object.__setattr__(self, "disclosed", tuple(self.disclosed))

        try:
            self.config.validate()
        except SpongeParameterError as e:
            raise CircuitConfigurationError(f"invalid sponge parameters: {e}") from e
        self.schema.validate()

        if len(self.attributes) != self.schema.witness_count:
            raise CircuitConfigurationError(
                f"schema expects {self.schema.witness_count} attributes, "
                f"got {len(self.attributes)}"
            )
        if len(self.disclosed) != len(self.schema.disclosed_positions):
            raise CircuitConfigurationError(
                f"schema discloses {len(self.schema.disclosed_positions)} values, "
                f"got {len(self.disclosed)}"
            )

    @classmethod
    def shape_only(
        cls,
        config: Optional[PoseidonConfig] = None,
        schema: Optional[DisclosureSchema] = None,
    ) -> 'CommitmentOpeningCircuit':
        """Instance with no values, used to fix the topology during setup."""
        config = config or reference_config()
        schema = schema or reference_schema()
        return cls(
            attributes=(None,) * schema.witness_count,
            commitment=None,
            disclosed=(None,) * len(schema.disclosed_positions),
            config=config,
            schema=schema,
        )

    @classmethod
    def concrete(
        cls,
        attributes: Sequence[FieldElement],
        commitment: FieldElement,
        disclosed: Sequence[FieldElement],
        config: Optional[PoseidonConfig] = None,
        schema: Optional[DisclosureSchema] = None,
    ) -> 'CommitmentOpeningCircuit':
        return cls(
            attributes=tuple(attributes),
            commitment=commitment,
            disclosed=tuple(disclosed),
            config=config or reference_config(),
            schema=schema or reference_schema(),
        )

    @property
    def is_shape_only(self) -> bool:
        return (
            all(a is None for a in self.attributes)
            and self.commitment is None
            and all(d is None for d in self.disclosed)
        )

    @property
    def digest(self) -> str:
        """Content-addressed identifier of the circuit shape."""
        content = {
            "circuit_id": CIRCUIT_ID,
            "schema": self.schema.to_dict(),
            "sponge": self.config.digest(),
        }
        canonical = json.dumps(content, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode()).hexdigest()

    def public_input_names(self) -> List[str]:
        return self.schema.public_input_names()

    def public_inputs(self) -> List[FieldElement]:
        """Public values in the order verification expects them."""
        values: List[FieldElement] = []
        for name, value in zip(self.public_input_names(), (self.commitment,) + self.disclosed):
            if value is None:
                raise AssignmentMissing(name)
            values.append(value)
        return values

    def synthesize(self, cs: ConstraintSystem) -> None:
        """Allocate variables and enforce the predicate on cs."""
        attribute_vars = [
            FieldVar.witness(cs, _assignment(value, f"attribute[{i}]"), f"attribute[{i}]")
            for i, value in enumerate(self.attributes)
        ]
        commitment_var = FieldVar.public(
            cs, _assignment(self.commitment, "commitment"), "commitment"
        )
        disclosed_vars = [
            FieldVar.public(cs, _assignment(value, f"disclosed[{pos}]"), f"disclosed[{pos}]")
            for pos, value in zip(self.schema.disclosed_positions, self.disclosed)
        ]

        sponge = PoseidonSpongeVar(cs, self.config)
        sponge.absorb(attribute_vars)
        digest_var = sponge.squeeze(1)[0]

        digest_var.enforce_equal(commitment_var, label="digest == commitment")
        for pos, disclosed_var in zip(self.schema.disclosed_positions, disclosed_vars):
            attribute_vars[pos].enforce_equal(
                disclosed_var, label=f"attribute[{pos}] == disclosed[{pos}]"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "circuit_id": CIRCUIT_ID,
            "schema": self.schema.to_dict(),
            "sponge": self.config.to_dict(),
            "public_input_names": self.public_input_names(),
            "shape_only": self.is_shape_only,
            "digest": self.digest,
        }
