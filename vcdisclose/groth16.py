"""
Groth16 over BN254

Pairing-based succinct proofs for rank-1 constraint systems, built on the
py_ecc BN254 implementation.

    Setup:   sample tau, alpha, beta, gamma, delta (toxic waste, discarded)
             QAP polynomials u_i, v_i, w_i evaluated at tau via Lagrange
             coefficients over the evaluation domain.
    Prove:   A = alpha + sum z_i u_i(tau) + r delta                    (G1)
             B = beta  + sum z_i v_i(tau) + s delta                    (G2)
             C = sum_{witness} z_i L_i + h(tau) Z(tau)/delta
                 + s A + r B - r s delta                               (G1)
    Verify:  e(A, B) == e(alpha, beta) e(sum x_i IC_i, gamma) e(C, delta)

One extra row x_i * 0 = 0 is appended per public variable (ONE included) so
the public polynomials are linearly independent.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple, Union

from py_ecc.optimized_bn128 import FQ12, Z1, Z2, add, multiply, neg, pairing

from vcdisclose.curve import (
    G1_BYTES,
    G2_BYTES,
    MalformedPoint,
    Point,
    g1_from_bytes,
    g1_table,
    g1_to_bytes,
    g2_from_bytes,
    g2_table,
    g2_to_bytes,
    is_valid_g1,
    is_valid_g2,
    multiexp,
)
from vcdisclose.domain import EvaluationDomain
from vcdisclose.field import FIELD_MODULUS, FieldElement
from vcdisclose.hardening import CryptoUtils, Validators
from vcdisclose.observability import Layer, get_logger
from vcdisclose.r1cs import ConstraintSystem

logger = get_logger("groth16", Layer.GROTH16)

PROOF_BYTES = G1_BYTES + G2_BYTES + G1_BYTES


class MalformedPublicInput(ValueError):
    """Public inputs do not match the verifying key's schema."""
    pass


class MalformedProof(ValueError):
    """Proof bytes cannot be decoded into valid group elements."""
    pass


# =============================================================================
# KEYS
# =============================================================================

@dataclass(frozen=True, eq=False)
class VerifyingKey:
    """
    Verification key for one constraint topology.

    gamma_abc_g1[0] belongs to the constant ONE; the remaining entries follow
    the circuit's declared public-input order.
    """
    alpha_g1: Point
    beta_g2: Point
    gamma_g2: Point
    delta_g2: Point
    gamma_abc_g1: Tuple[Point, ...]
    shape_digest: str

    @property
    def public_input_count(self) -> int:
        return len(self.gamma_abc_g1) - 1

    def to_bytes(self) -> bytes:
        parts = [
            g1_to_bytes(self.alpha_g1),
            g2_to_bytes(self.beta_g2),
            g2_to_bytes(self.gamma_g2),
            g2_to_bytes(self.delta_g2),
        ]
        parts.extend(g1_to_bytes(p) for p in self.gamma_abc_g1)
        return b"".join(parts)

    @property
    def digest(self) -> str:
        return hashlib.sha256(self.to_bytes()).hexdigest()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proof_system": "groth16",
            "curve": "bn254",
            "public_input_count": self.public_input_count,
            "shape_digest": self.shape_digest,
            "key_digest": self.digest,
        }


@dataclass(frozen=True, eq=False)
class ProvingKey:
    """
    Proving key: the verifying key plus the query vectors indexed by
    assignment column (public variables first, then witnesses).
    """
    vk: VerifyingKey
    beta_g1: Point
    delta_g1: Point
    a_query: Tuple[Point, ...]
    b_g1_query: Tuple[Point, ...]
    b_g2_query: Tuple[Point, ...]
    h_query: Tuple[Point, ...]
    l_query: Tuple[Point, ...]
    domain_size: int
    num_constraints: int

    @property
    def shape_digest(self) -> str:
        return self.vk.shape_digest

    @property
    def num_public(self) -> int:
        return len(self.vk.gamma_abc_g1)

    @property
    def num_variables(self) -> int:
        return len(self.a_query)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proof_system": "groth16",
            "curve": "bn254",
            "constraint_count": self.num_constraints,
            "variable_count": self.num_variables,
            "domain_size": self.domain_size,
            "shape_digest": self.shape_digest,
            "vk_digest": self.vk.digest,
        }


@dataclass(frozen=True, eq=False)
class PreparedVerifyingKey:
    """Verifying key with e(alpha, beta) precomputed."""
    vk: VerifyingKey
    alpha_g1_beta_g2: FQ12

    @property
    def public_input_count(self) -> int:
        return self.vk.public_input_count


# =============================================================================
# PROOF
# =============================================================================

@dataclass(frozen=True, eq=False)
class Proof:
    """Fixed-size proof (A in G1, B in G2, C in G1)."""
    a: Point
    b: Point
    c: Point

    def to_bytes(self) -> bytes:
        return g1_to_bytes(self.a) + g2_to_bytes(self.b) + g1_to_bytes(self.c)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Proof':
        if len(data) != PROOF_BYTES:
            raise MalformedProof(f"proof must be {PROOF_BYTES} bytes, got {len(data)}")
        try:
            return cls(
                a=g1_from_bytes(data[:G1_BYTES]),
                b=g2_from_bytes(data[G1_BYTES:G1_BYTES + G2_BYTES]),
                c=g1_from_bytes(data[G1_BYTES + G2_BYTES:]),
            )
        except MalformedPoint as e:
            raise MalformedProof(str(e)) from e

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    @classmethod
    def from_hex(cls, value: str) -> 'Proof':
        try:
            data = bytes.fromhex(value)
        except ValueError as e:
            raise MalformedProof("proof is not valid hex") from e
        return cls.from_bytes(data)

    @property
    def digest(self) -> str:
        """Content-addressed identifier for the proof."""
        return hashlib.sha256(self.to_bytes()).hexdigest()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Proof):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proof_system": "groth16",
            "proof_data": self.to_hex(),
            "digest": self.digest,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Proof':
        """Decode a proof; a carried digest must match the decoded bytes."""
        proof = cls.from_hex(data["proof_data"])
        if "digest" in data:
            result = Validators.validate_digest(data["digest"])
            if not result.is_valid:
                raise MalformedProof(str(result.errors[0]))
            if not CryptoUtils.secure_compare_str(result.sanitized_value, proof.digest):
                raise MalformedProof("proof digest does not match proof data")
        return proof


# =============================================================================
# QAP
# =============================================================================

Rows = List[List[Tuple[int, int]]]


def _qap_rows(cs: ConstraintSystem) -> Tuple[Rows, Rows, Rows]:
    a_rows, b_rows, c_rows = cs.matrices()
    for i in range(cs.num_public):
        a_rows.append([(i, 1)])
        b_rows.append([])
        c_rows.append([])
    return a_rows, b_rows, c_rows


def _random_scalar(rng: Any) -> int:
    return rng.randrange(1, FIELD_MODULUS)


def _inverse(x: int) -> int:
    return pow(x, FIELD_MODULUS - 2, FIELD_MODULUS)


# =============================================================================
# SETUP
# =============================================================================

def generate_parameters(cs: ConstraintSystem, rng: Any) -> ProvingKey:
    """
    Trusted setup for the topology of cs.

    Only the structure of cs is read; it may come from a shape-only
    synthesis. The sampled trapdoor never leaves this function.
    """
    p = FIELD_MODULUS
    a_rows, b_rows, c_rows = _qap_rows(cs)
    domain = EvaluationDomain(len(a_rows))
    num_public = cs.num_public
    num_vars = cs.num_variables

    tau = _random_scalar(rng)
    while domain.evaluate_vanishing(tau) == 0:
        tau = _random_scalar(rng)
    alpha = _random_scalar(rng)
    beta = _random_scalar(rng)
    gamma = _random_scalar(rng)
    delta = _random_scalar(rng)

    lagrange = domain.lagrange_coefficients(tau)
    u = [0] * num_vars
    v = [0] * num_vars
    w = [0] * num_vars
    for rows, acc in ((a_rows, u), (b_rows, v), (c_rows, w)):
        for j, row in enumerate(rows):
            for col, coeff in row:
                acc[col] = (acc[col] + coeff * lagrange[j]) % p

    gamma_inv = _inverse(gamma)
    delta_inv = _inverse(delta)
    combined = [(beta * u[i] + alpha * v[i] + w[i]) % p for i in range(num_vars)]
    ic_scalars = [combined[i] * gamma_inv % p for i in range(num_public)]
    l_scalars = [combined[i] * delta_inv % p for i in range(num_public, num_vars)]

    zt_over_delta = domain.evaluate_vanishing(tau) * delta_inv % p
    h_scalars = []
    power = 1
    for _ in range(domain.size - 1):
        h_scalars.append(power * zt_over_delta % p)
        power = power * tau % p

    g1 = g1_table()
    g2 = g2_table()

    vk = VerifyingKey(
        alpha_g1=g1.mul(alpha),
        beta_g2=g2.mul(beta),
        gamma_g2=g2.mul(gamma),
        delta_g2=g2.mul(delta),
        gamma_abc_g1=tuple(g1.batch_mul(ic_scalars)),
        shape_digest=cs.shape_digest(),
    )
    pk = ProvingKey(
        vk=vk,
        beta_g1=g1.mul(beta),
        delta_g1=g1.mul(delta),
        a_query=tuple(g1.batch_mul(u)),
        b_g1_query=tuple(g1.batch_mul(v)),
        b_g2_query=tuple(g2.batch_mul(v)),
        h_query=tuple(g1.batch_mul(h_scalars)),
        l_query=tuple(g1.batch_mul(l_scalars)),
        domain_size=domain.size,
        num_constraints=cs.num_constraints,
    )
    logger.debug(
        "Generated parameters",
        operation="generate_parameters",
        constraints=cs.num_constraints,
        variables=num_vars,
        domain_size=domain.size,
    )
    return pk


def prepare_verifying_key(vk: VerifyingKey) -> PreparedVerifyingKey:
    return PreparedVerifyingKey(vk=vk, alpha_g1_beta_g2=pairing(vk.beta_g2, vk.alpha_g1))


# =============================================================================
# PROVE
# =============================================================================

def _evaluate_rows(rows: Rows, z: Sequence[int], size: int) -> List[int]:
    out = [0] * size
    for j, row in enumerate(rows):
        total = 0
        for col, coeff in row:
            total += coeff * z[col]
        out[j] = total % FIELD_MODULUS
    return out


def compute_h(cs: ConstraintSystem, z: Sequence[int], domain: EvaluationDomain) -> List[int]:
    """
    Coefficients of h = (A*B - C) / Z, computed pointwise on the coset.

    Exact division holds only for a satisfying assignment; otherwise the
    truncated quotient yields a proof that fails verification.
    """
    p = FIELD_MODULUS
    a_rows, b_rows, c_rows = _qap_rows(cs)
    a_coset = domain.coset_fft(domain.ifft(_evaluate_rows(a_rows, z, domain.size)))
    b_coset = domain.coset_fft(domain.ifft(_evaluate_rows(b_rows, z, domain.size)))
    c_coset = domain.coset_fft(domain.ifft(_evaluate_rows(c_rows, z, domain.size)))
    z_inv = _inverse(domain.coset_vanishing())
    h_coset = [(a * b_ - c) * z_inv % p for a, b_, c in zip(a_coset, b_coset, c_coset)]
    return domain.coset_ifft(h_coset)[:domain.size - 1]


def create_proof(cs: ConstraintSystem, pk: ProvingKey, rng: Any) -> Proof:
    """Prove knowledge of the assignment held by cs (PROVE-mode synthesis)."""
    z = cs.full_assignment()
    if len(z) != pk.num_variables or cs.num_public != pk.num_public:
        raise ValueError(
            f"assignment has {len(z)} variables ({cs.num_public} public); "
            f"key expects {pk.num_variables} ({pk.num_public} public)"
        )

    p = FIELD_MODULUS
    domain = EvaluationDomain(pk.domain_size)
    h = compute_h(cs, z, domain)

    r = _random_scalar(rng)
    s = _random_scalar(rng)
    vk = pk.vk

    a = add(add(vk.alpha_g1, multiexp(pk.a_query, z, Z1)), multiply(pk.delta_g1, r))
    b_g2 = add(add(vk.beta_g2, multiexp(pk.b_g2_query, z, Z2)), multiply(vk.delta_g2, s))
    b_g1 = add(add(pk.beta_g1, multiexp(pk.b_g1_query, z, Z1)), multiply(pk.delta_g1, s))

    c = add(multiexp(pk.l_query, z[pk.num_public:], Z1), multiexp(pk.h_query, h, Z1))
    c = add(c, multiply(a, s))
    c = add(c, multiply(b_g1, r))
    c = add(c, neg(multiply(pk.delta_g1, r * s % p)))

    return Proof(a=a, b=b_g2, c=c)


# =============================================================================
# VERIFY
# =============================================================================

PublicValue = Union[FieldElement, int]


def _public_scalars(pvk: PreparedVerifyingKey, public_inputs: Sequence[PublicValue]) -> List[int]:
    expected = pvk.public_input_count
    if len(public_inputs) != expected:
        raise MalformedPublicInput(
            f"expected {expected} public inputs, got {len(public_inputs)}"
        )
    scalars = []
    for i, value in enumerate(public_inputs):
        result = Validators.validate_field_element(value, f"public input {i}")
        if not result.is_valid:
            raise MalformedPublicInput(str(result.errors[0]))
        scalars.append(result.sanitized_value.value)
    return scalars


def verify_proof(
    pvk: PreparedVerifyingKey,
    proof: Proof,
    public_inputs: Sequence[PublicValue],
) -> bool:
    """
    Check a proof. Raises MalformedPublicInput for a schema mismatch;
    otherwise returns a boolean and never raises for an invalid proof.
    """
    scalars = _public_scalars(pvk, public_inputs)

    if not (is_valid_g1(proof.a) and is_valid_g2(proof.b) and is_valid_g1(proof.c)):
        logger.warning("Proof points are not valid group elements", operation="verify_proof")
        return False

    vk = pvk.vk
    acc = add(vk.gamma_abc_g1[0], multiexp(vk.gamma_abc_g1[1:], scalars, Z1))

    lhs = pairing(proof.b, proof.a)
    rhs = pvk.alpha_g1_beta_g2 * pairing(vk.gamma_g2, acc) * pairing(vk.delta_g2, proof.c)
    return lhs == rhs
