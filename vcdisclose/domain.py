"""
Evaluation Domain

Radix-2 multiplicative subgroup H = <w> of the BN254 scalar field, with the
FFTs the prover needs to move between evaluations over H, coefficients, and
evaluations over the coset g*H (where the vanishing polynomial is a nonzero
constant and division by it is pointwise).

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from typing import List, Sequence

from vcdisclose.field import FIELD_MODULUS

# Multiplicative generator of Fr* and the 2-adicity of r - 1.
GENERATOR: int = 5
TWO_ADICITY: int = 28


def _fft(values: Sequence[int], omega: int) -> List[int]:
    """In-order iterative Cooley-Tukey: out[k] = sum_j values[j] * omega^(j*k)."""
    p = FIELD_MODULUS
    a = list(values)
    n = len(a)

    j = 0
    for i in range(1, n):
        bit = n >> 1
        while j & bit:
            j ^= bit
            bit >>= 1
        j |= bit
        if i < j:
            a[i], a[j] = a[j], a[i]

    length = 2
    while length <= n:
        half = length // 2
        w_len = pow(omega, n // length, p)
        twiddles = [1] * half
        for k in range(1, half):
            twiddles[k] = twiddles[k - 1] * w_len % p
        for start in range(0, n, length):
            for k in range(half):
                u = a[start + k]
                v = a[start + k + half] * twiddles[k] % p
                a[start + k] = (u + v) % p
                a[start + k + half] = (u - v) % p
        length <<= 1
    return a


class EvaluationDomain:
    """Subgroup of size 2^k >= the requested size."""

    def __init__(self, min_size: int):
        size = 1
        log_size = 0
        while size < max(min_size, 2):
            size <<= 1
            log_size += 1
        if log_size > TWO_ADICITY:
            raise ValueError(f"domain of size {size} exceeds the field's 2-adicity")

        p = FIELD_MODULUS
        self.size = size
        self.log_size = log_size
        self.group_gen = pow(GENERATOR, (p - 1) // size, p)
        self.group_gen_inv = pow(self.group_gen, p - 2, p)
        self.size_inv = pow(size, p - 2, p)
        self.coset_shift = GENERATOR
        self.coset_shift_inv = pow(GENERATOR, p - 2, p)

    def _pad(self, values: Sequence[int]) -> List[int]:
        if len(values) > self.size:
            raise ValueError(f"{len(values)} values do not fit a domain of size {self.size}")
        return list(values) + [0] * (self.size - len(values))

    def elements(self) -> List[int]:
        out = [1] * self.size
        for i in range(1, self.size):
            out[i] = out[i - 1] * self.group_gen % FIELD_MODULUS
        return out

    def fft(self, coeffs: Sequence[int]) -> List[int]:
        return _fft(self._pad(coeffs), self.group_gen)

    def ifft(self, evals: Sequence[int]) -> List[int]:
        out = _fft(self._pad(evals), self.group_gen_inv)
        return [v * self.size_inv % FIELD_MODULUS for v in out]

    def coset_fft(self, coeffs: Sequence[int]) -> List[int]:
        shifted = self._pad(coeffs)
        factor = 1
        for i in range(self.size):
            shifted[i] = shifted[i] * factor % FIELD_MODULUS
            factor = factor * self.coset_shift % FIELD_MODULUS
        return _fft(shifted, self.group_gen)

    def coset_ifft(self, evals: Sequence[int]) -> List[int]:
        coeffs = self.ifft(evals)
        factor = 1
        for i in range(self.size):
            coeffs[i] = coeffs[i] * factor % FIELD_MODULUS
            factor = factor * self.coset_shift_inv % FIELD_MODULUS
        return coeffs

    def evaluate_vanishing(self, tau: int) -> int:
        """Z(tau) = tau^n - 1."""
        return (pow(tau, self.size, FIELD_MODULUS) - 1) % FIELD_MODULUS

    def coset_vanishing(self) -> int:
        """Z on the coset g*H, which is the constant g^n - 1."""
        return self.evaluate_vanishing(self.coset_shift)

    def lagrange_coefficients(self, tau: int) -> List[int]:
        """
        L_i(tau) for every i, with L_i the Lagrange basis over H.

        L_i(tau) = Z(tau) / n * w^i / (tau - w^i); tau must lie outside H.
        """
        p = FIELD_MODULUS
        z = self.evaluate_vanishing(tau)
        if z == 0:
            raise ValueError("evaluation point lies inside the domain")

        elements = self.elements()
        denominators = [(tau - w) % p for w in elements]

        # Batch inversion
        prefix = [1] * self.size
        acc = 1
        for i, d in enumerate(denominators):
            prefix[i] = acc
            acc = acc * d % p
        inv = pow(acc, p - 2, p)
        inverses = [0] * self.size
        for i in range(self.size - 1, -1, -1):
            inverses[i] = inv * prefix[i] % p
            inv = inv * denominators[i] % p

        scale = z * self.size_inv % p
        return [scale * w % p * inverses[i] % p for i, w in enumerate(elements)]
