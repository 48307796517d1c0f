"""
vcdisclose: Selective Disclosure for Committed Credentials

A holder commits to the attributes of a credential with a Poseidon sponge and
later proves, in zero knowledge, that the commitment opens to attributes of
which one or more designated positions equal public values. Nothing else
about the attributes is revealed.

Architecture
────────────

    ┌─────────────────────────────────────────────────────────────────────────┐
    │                         SELECTIVE DISCLOSURE                             │
    │                                                                          │
    │  PROTOCOL                                                               │
    │    protocol.py    setup / prove / verify, CredentialStatement           │
    │    cli.py         commit, demo, config commands                         │
    │                                                                          │
    │  CIRCUIT                                                                │
    │    circuit.py     commitment-opening predicate, disclosure schema       │
    │    gadgets.py     constrained field arithmetic, constrained sponge      │
    │    r1cs.py        variables, linear combinations, rank-1 constraints    │
    │                                                                          │
    │  PRIMITIVES                                                             │
    │    field.py       BN254 scalar field, attribute encoding               │
    │    sponge.py      Poseidon permutation and duplex sponge                │
    │    groth16.py     trusted setup, prover, verifier                      │
    │    domain.py      radix-2 evaluation domain and FFTs                    │
    │    curve.py       G1/G2 tables, multi-scalar multiplication, encoding   │
    │                                                                          │
    │  AMBIENT                                                                │
    │    config.py      YAML and environment configuration                   │
    │    observability.py  structured logging                                │
    │    hardening.py   input validation                                     │
    │                                                                          │
    └─────────────────────────────────────────────────────────────────────────┘

Core Concepts
─────────────

    Commitment: squeeze(absorb(encode(a_0), ..., encode(a_{n-1}))) over the
    sponge. Binding under the sponge's collision resistance; hiding only
    when an attribute carries enough entropy (no blinding factor is mixed in).

    Disclosed value: encode(a_k) for each position k in the schema, exposed
    as a public input next to the commitment.

    Shape-only circuit: a circuit instance with no values. Setup synthesizes
    it to fix the constraint topology that the keys are bound to.

Copyright (c) 2026 Momentum. All rights reserved.
"""

__version__ = "0.1.0"


def __getattr__(name):
    """Lazy import submodules on first access."""

    if name in ("FIELD_MODULUS", "FieldElement", "encode_attribute", "encode_attributes"):
        from vcdisclose import field
        return getattr(field, name)

    if name in ("PoseidonConfig", "PoseidonSponge", "SpongeProfile", "SpongeParameterError",
                "reference_config", "derive_config", "commit"):
        from vcdisclose import sponge
        return getattr(sponge, name)

    if name in ("ConstraintSystem", "SynthesisMode", "SynthesisError", "AssignmentMissing",
                "MissingAssignment", "LinearCombination", "Variable", "Role"):
        from vcdisclose import r1cs
        return getattr(r1cs, name)

    if name in ("CommitmentOpeningCircuit", "DisclosureSchema", "CircuitConfigurationError",
                "reference_schema", "CIRCUIT_ID"):
        from vcdisclose import circuit
        return getattr(circuit, name)

    if name in ("Proof", "ProvingKey", "VerifyingKey", "PreparedVerifyingKey",
                "MalformedPublicInput", "MalformedProof"):
        from vcdisclose import groth16
        return getattr(groth16, name)

    if name in ("KeyPair", "CredentialStatement", "CircuitMismatch",
                "UnsatisfiedConstraints", "setup", "prepare", "prove", "verify"):
        from vcdisclose import protocol
        return getattr(protocol, name)

    raise AttributeError(f"module 'vcdisclose' has no attribute '{name}'")


__all__ = [
    "__version__",
    # Field
    "FIELD_MODULUS",
    "FieldElement",
    "encode_attribute",
    "encode_attributes",
    # Sponge
    "PoseidonConfig",
    "PoseidonSponge",
    "reference_config",
    "derive_config",
    "commit",
    # Circuit
    "CommitmentOpeningCircuit",
    "DisclosureSchema",
    "AssignmentMissing",
    # Proofs
    "Proof",
    "ProvingKey",
    "VerifyingKey",
    "PreparedVerifyingKey",
    "MalformedPublicInput",
    # Protocol
    "KeyPair",
    "CredentialStatement",
    "setup",
    "prepare",
    "prove",
    "verify",
]
