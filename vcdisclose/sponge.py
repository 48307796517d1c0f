"""
Sponge Commitment

Poseidon duplex sponge over the BN254 scalar field. This is the native
(out-of-circuit) evaluation used to compute the public commitment; the
constraint-level twin lives in gadgets.PoseidonSpongeVar and must follow the
exact same schedule.

State layout:
    [ capacity lanes | rate lanes ]

Permutation:
    full_rounds/2 full rounds  ->  partial_rounds  ->  full_rounds/2 full rounds
    each round: add round constants, S-box (x^alpha), MDS mix
    partial rounds apply the S-box to lane 0 only.

Absorb/squeeze schedule:
    - elements are added into the rate lanes; a full rate block is permuted
      lazily, only when another element arrives
    - the first squeeze after absorbing permutes first
    - absorbing after squeezing permutes first

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import hashlib
import itertools
import math
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Iterable, List, Sequence, Tuple, Union

from vcdisclose.field import FIELD_MODULUS, FieldElement


class SpongeParameterError(ValueError):
    """Sponge parameters are inconsistent or unsafe."""
    pass


class SpongeProfile(Enum):
    """
    Parameter profiles.

    REFERENCE pins the parameters credential commitments are issued under:
    8 full and 57 partial rounds, alpha 5, a Cauchy MDS matrix and round
    constants derived from REFERENCE_SEED. DERIVED builds the same kind of
    parameter set from configurable round counts, width and seed.
    """
    REFERENCE = "reference"
    DERIVED = "derived"


Matrix = Tuple[Tuple[int, ...], ...]


@dataclass(frozen=True)
class PoseidonConfig:
    """Fixed parameters of a Poseidon sponge."""
    full_rounds: int
    partial_rounds: int
    alpha: int
    mds: Matrix
    ark: Matrix
    rate: int
    capacity: int

    @property
    def width(self) -> int:
        return self.rate + self.capacity

    @property
    def total_rounds(self) -> int:
        return self.full_rounds + self.partial_rounds

    def validate(self) -> None:
        """Raise SpongeParameterError on any inconsistency."""
        if self.rate < 1:
            raise SpongeParameterError(f"rate must be >= 1, got {self.rate}")
        if self.capacity < 1:
            raise SpongeParameterError(f"capacity must be >= 1, got {self.capacity}")
        if self.full_rounds < 0 or self.full_rounds % 2 != 0:
            raise SpongeParameterError(
                f"full_rounds must be a non-negative even number, got {self.full_rounds}"
            )
        if self.partial_rounds < 0:
            raise SpongeParameterError(f"partial_rounds must be >= 0, got {self.partial_rounds}")
        if self.total_rounds == 0:
            raise SpongeParameterError("permutation must have at least one round")
        if self.alpha < 2 or math.gcd(self.alpha, FIELD_MODULUS - 1) != 1:
            raise SpongeParameterError(
                f"alpha={self.alpha} does not define a permutation of the field"
            )

        width = self.width
        if len(self.mds) != width or any(len(row) != width for row in self.mds):
            raise SpongeParameterError(f"mds must be a {width}x{width} matrix")
        if len(self.ark) != self.total_rounds or any(len(row) != width for row in self.ark):
            raise SpongeParameterError(
                f"ark must have {self.total_rounds} rows of {width} constants"
            )
        for row in self.mds + self.ark:
            for entry in row:
                if not 0 <= entry < FIELD_MODULUS:
                    raise SpongeParameterError("sponge constants must be reduced field elements")
        if not is_mds(self.mds):
            raise SpongeParameterError(
                "mds matrix is not MDS: every square submatrix must be invertible"
            )

    def digest(self) -> str:
        """Content-addressed identifier of the parameter set."""
        h = hashlib.sha256()
        for n in (self.full_rounds, self.partial_rounds, self.alpha, self.rate, self.capacity):
            h.update(n.to_bytes(8, "big"))
        for row in self.mds + self.ark:
            for entry in row:
                h.update(entry.to_bytes(32, "big"))
        return h.hexdigest()

    def to_dict(self) -> dict:
        return {
            "full_rounds": self.full_rounds,
            "partial_rounds": self.partial_rounds,
            "alpha": self.alpha,
            "rate": self.rate,
            "capacity": self.capacity,
            "digest": self.digest(),
        }


# =============================================================================
# MDS CHECK
# =============================================================================

# Above this width only the full matrix and its entries are checked.
EXHAUSTIVE_MDS_WIDTH = 6


def _determinant(rows: Sequence[Sequence[int]]) -> int:
    """Determinant mod r by Gaussian elimination."""
    p = FIELD_MODULUS
    m = [[entry % p for entry in row] for row in rows]
    n = len(m)
    det = 1
    for col in range(n):
        pivot = next((r for r in range(col, n) if m[r][col] != 0), None)
        if pivot is None:
            return 0
        if pivot != col:
            m[col], m[pivot] = m[pivot], m[col]
            det = -det
        det = det * m[col][col] % p
        inv = pow(m[col][col], p - 2, p)
        for r in range(col + 1, n):
            factor = m[r][col] * inv % p
            if factor:
                m[r] = [(a - factor * b) % p for a, b in zip(m[r], m[col])]
    return det % p


def is_mds(matrix: Matrix) -> bool:
    """
    True if every square submatrix of the matrix is non-singular.

    An MDS mix carries every lane into every output lane, so no absorbed
    element can be cancelled out of the squeezed digest. The identity, or any
    matrix with a zero entry, fails at the 1x1 minors.
    """
    width = len(matrix)
    if any(entry % FIELD_MODULUS == 0 for row in matrix for entry in row):
        return False
    if width > EXHAUSTIVE_MDS_WIDTH:
        return _determinant(matrix) != 0
    for size in range(2, width + 1):
        for rows in itertools.combinations(range(width), size):
            for cols in itertools.combinations(range(width), size):
                if _determinant([[matrix[i][j] for j in cols] for i in rows]) == 0:
                    return False
    return True


# =============================================================================
# PARAMETER SETS
# =============================================================================

REFERENCE_SEED = b"vcdisclose-poseidon-reference-v1"


def _hash_to_field(seed: bytes, *counters: int) -> int:
    h = hashlib.blake2b(seed, digest_size=64)
    for c in counters:
        h.update(c.to_bytes(4, "big"))
    return int.from_bytes(h.digest(), "big") % FIELD_MODULUS


def derive_config(
    rate: int = 2,
    capacity: int = 1,
    full_rounds: int = 8,
    partial_rounds: int = 57,
    alpha: int = 5,
    seed: bytes = b"vcdisclose-poseidon-v1",
) -> PoseidonConfig:
    """
    Derive a parameter set with non-trivial constants.

    Round constants are BLAKE2b-512(seed || round || lane) reduced mod r.
    The MDS matrix is the Cauchy matrix M[i][j] = 1 / (i + (width + j)),
    which is MDS because all x_i and y_j are distinct and x_i + y_j != 0.
    """
    width = rate + capacity
    ark = tuple(
        tuple(_hash_to_field(seed, r, lane) for lane in range(width))
        for r in range(full_rounds + partial_rounds)
    )
    mds = tuple(
        tuple(pow(i + width + j, FIELD_MODULUS - 2, FIELD_MODULUS) for j in range(width))
        for i in range(width)
    )
    config = PoseidonConfig(
        full_rounds=full_rounds,
        partial_rounds=partial_rounds,
        alpha=alpha,
        mds=mds,
        ark=ark,
        rate=rate,
        capacity=capacity,
    )
    config.validate()
    return config


@lru_cache(maxsize=None)
def reference_config() -> PoseidonConfig:
    """The fixed parameters credential commitments are issued under."""
    return derive_config(seed=REFERENCE_SEED)


def permute(state: List[int], config: PoseidonConfig) -> List[int]:
    """Apply the Poseidon permutation to a state vector."""
    p = FIELD_MODULUS
    half = config.full_rounds // 2
    for r in range(config.total_rounds):
        state = [(s + c) % p for s, c in zip(state, config.ark[r])]
        if r < half or r >= half + config.partial_rounds:
            state = [pow(s, config.alpha, p) for s in state]
        else:
            state[0] = pow(state[0], config.alpha, p)
        state = [
            sum(m * s for m, s in zip(row, state)) % p
            for row in config.mds
        ]
    return state


class PoseidonSponge:
    """
    Native duplex sponge.

    Mutable: absorb() and squeeze() advance the internal state. Create one
    sponge per digest.
    """

    def __init__(self, config: PoseidonConfig):
        config.validate()
        self.config = config
        self.state: List[int] = [0] * config.width
        self._absorbing = True
        self._index = 0

    def _permute(self) -> None:
        self.state = permute(self.state, self.config)

    def absorb(self, elements: Iterable[Union[FieldElement, int]]) -> None:
        """Inject elements into the rate lanes."""
        values = [int(e) % FIELD_MODULUS for e in elements]
        if not values:
            return

        if self._absorbing:
            if self._index == self.config.rate:
                self._permute()
                self._index = 0
        else:
            self._permute()
            self._absorbing = True
            self._index = 0

        for v in values:
            if self._index == self.config.rate:
                self._permute()
                self._index = 0
            lane = self.config.capacity + self._index
            self.state[lane] = (self.state[lane] + v) % FIELD_MODULUS
            self._index += 1

    def squeeze(self, n: int = 1) -> List[FieldElement]:
        """Extract n elements from the rate lanes."""
        if n < 0:
            raise ValueError("cannot squeeze a negative number of elements")
        if n == 0:
            return []

        if self._absorbing:
            self._permute()
            self._absorbing = False
            self._index = 0

        out: List[FieldElement] = []
        for _ in range(n):
            if self._index == self.config.rate:
                self._permute()
                self._index = 0
            out.append(FieldElement(self.state[self.config.capacity + self._index]))
            self._index += 1
        return out


def commit(elements: Sequence[Union[FieldElement, int]], config: PoseidonConfig) -> FieldElement:
    """Sponge digest of an ordered element sequence: absorb all, squeeze one."""
    sponge = PoseidonSponge(config)
    sponge.absorb(elements)
    return sponge.squeeze(1)[0]
