# Copyright (c) 2026 Signer — MIT License

"""Deterministic XOF-driven samplers (FIPS 204 Section 7.3).

Every sampler is a pure function of its seed and nonce: it constructs a
fresh hashlib SHAKE instance, draws what it needs and discards it. No
XOF state is shared between calls, so identical inputs always reproduce
identical polynomials.

    expand_a        SHAKE-128, uniform NTT-domain matrix entries
    sample_eta      SHAKE-256, coefficients in [-eta, eta]
    expand_mask     SHAKE-256, coefficients in (-gamma1, gamma1]
    sample_in_ball  SHAKE-256, exactly tau coefficients equal to +/-1
"""

import hashlib

from .params import Q, N
from .packing import unpack_bits


# ── Uniform Matrix ────────────────────────────────────────────────

def rej_ntt_poly(seed34):
    """Sample uniform polynomial in Tq via rejection (Algorithm 30, FIPS 204).

    Uses CoeffFromThreeBytes: each 3-byte group yields a 23-bit candidate
    (top bit of b2 cleared). Reject if >= q. Result is already in NTT domain.

    seed34: 34-byte input (rho || IntegerToBytes(s,1) || IntegerToBytes(r,1)).
    """
    xof = hashlib.shake_128(seed34)
    coeffs = []
    need = 3 * N + 3 * 8  # a few spare candidates; rejection rate is ~0.1%
    buf = xof.digest(need)
    pos = 0
    while len(coeffs) < N:
        if pos + 3 > len(buf):
            need += 3 * 64
            buf = xof.digest(need)
        z = buf[pos] | (buf[pos + 1] << 8) | ((buf[pos + 2] & 0x7F) << 16)
        pos += 3
        if z < Q:
            coeffs.append(z)
    return coeffs


def expand_a(rho, params):
    """Expand seed rho into the k×l matrix Â of NTT-domain polynomials.

    Algorithm 32, FIPS 204. Entry (r, s) is seeded with rho || s || r,
    column index first.
    """
    return [
        [rej_ntt_poly(rho + bytes([s, r])) for s in range(params.l)]
        for r in range(params.k)
    ]


# ── Secret Vectors ────────────────────────────────────────────────

def _coeff_from_half_byte(b, eta):
    """Map a nibble to eta - value, or None if rejected (Algorithm 15)."""
    if eta == 2:
        if b < 15:
            return 2 - (b - 5 * ((205 * b) >> 10))     # 2 - (b mod 5)
        return None
    if b < 9:
        return 4 - b
    return None


def sample_eta(seed, nonce, eta):
    """Sample a polynomial with coefficients in [-eta, eta] (Algorithm 31).

    Rejection on the nibbles of SHAKE256(seed || nonce as 2 LE bytes).
    Negative coefficients are stored as q + c.
    """
    if eta not in (2, 4):
        raise ValueError(f"eta must be 2 or 4, got {eta}")
    xof = hashlib.shake_256(seed + nonce.to_bytes(2, "little"))
    need = 136 if eta == 2 else 272
    stream = xof.digest(need)
    coeffs = []
    pos = 0
    while len(coeffs) < N:
        if pos >= len(stream):
            need += 136
            stream = xof.digest(need)
        b = stream[pos]
        pos += 1
        for nibble in (b & 0x0F, b >> 4):
            c = _coeff_from_half_byte(nibble, eta)
            if c is not None and len(coeffs) < N:
                coeffs.append(c + ((c >> 63) & Q))
    return coeffs


def expand_s(rho_prime, params):
    """Expand rho' into secret vectors s1 (l-vector) and s2 (k-vector).

    Algorithm 33, FIPS 204.
    """
    s1 = [sample_eta(rho_prime, j, params.eta) for j in range(params.l)]
    s2 = [sample_eta(rho_prime, params.l + j, params.eta) for j in range(params.k)]
    return s1, s2


# ── Masking Vector ────────────────────────────────────────────────

def expand_mask(rho_pp, kappa, params):
    """Expand rho'' into the masking vector y (Algorithm 34).

    Polynomial r is read from SHAKE256(rho'' || (kappa + r) as 2 LE bytes)
    as 256 fields of gamma1_bits bits; coefficient = gamma1 - field, so
    coefficients lie in (-gamma1, gamma1].
    """
    bits = params.gamma1_bits
    gamma1 = params.gamma1
    y = []
    for r in range(params.l):
        nonce = (kappa + r).to_bytes(2, "little")
        stream = hashlib.shake_256(rho_pp + nonce).digest(N * bits // 8)
        coeffs = []
        for field in unpack_bits(stream, bits, N):
            c = gamma1 - field
            coeffs.append(c + ((c >> 63) & Q))
        y.append(coeffs)
    return y


# ── Challenge ─────────────────────────────────────────────────────

def sample_in_ball(c_tilde, tau):
    """Sample challenge polynomial c with exactly tau non-zero coefficients.

    Algorithm 29, FIPS 204. The first 8 XOF bytes are the sign bits; the
    following bytes drive an in-place Fisher-Yates style shuffle.
    """
    xof = hashlib.shake_256(c_tilde)
    buf = xof.digest(8 + tau + 32)
    sign_bits = int.from_bytes(buf[:8], "little")
    c = [0] * N
    pos = 8
    for i in range(N - tau, N):
        # Rejection sample j in [0, i]
        while True:
            if pos >= len(buf):
                buf = xof.digest(len(buf) + 136)
            j = buf[pos]
            pos += 1
            if j <= i:
                break
        c[i] = c[j]
        sign = (sign_bits >> (i - (N - tau))) & 1
        # Branchless: sign=0 -> 1, sign=1 -> Q-1
        c[j] = 1 + sign * (Q - 2)
    return c
