# Copyright (c) 2026 Signer — MIT License

"""Rounding and hints (FIPS 204 Section 7.4).

Scalar functions over coefficients in [0, q):

    power2round(r)            -> (r0, r1)   r = r1 * 2^d + r0
    decompose(r, gamma2)      -> (r0, r1)   r = r1 * 2*gamma2 + r0
    make_hint(z, r, gamma2)   -> bool       HighBits(r) != HighBits(r + z)
    use_hint(h, r, gamma2)    -> r1'        corrected high bits

Low parts are returned as signed ints. Branchless: comparisons are
computed with `(x - y) >> 63` masks and Barrett reduction replaces `%`.
"""

from .params import Q, D, ML_DSA_44, ML_DSA_87

# ── Barrett Reduction Constants ───────────────────────────────────
# One multiplier per standard gamma2: floor(2^43 / (2 * gamma2)).
# For x in [0, q) the quotient estimate is low by at most 1.

_BARRETT_SHIFT_2G = 43
_BARRETT_MULT_2G = {
    g: (1 << _BARRETT_SHIFT_2G) // (2 * g)
    for g in (ML_DSA_44.gamma2, ML_DSA_87.gamma2)
}


def power2round(r):
    """Split r into (r0, r1) with r = r1*2^d + r0 (Algorithm 35).

    r0 in [-2^(d-1) + 1, 2^(d-1)]. Branchless.
    """
    r0 = r & ((1 << D) - 1)  # r mod 2^d (bitmask, no division)
    # Branchless centering: if r0 > 2^(d-1), subtract 2^d
    _half = 1 << (D - 1)  # 4096
    gt = 1 + ((r0 - _half - 1) >> 63)  # 1 if r0 > 4096, else 0
    r0 = r0 - gt * (1 << D)
    r1 = (r - r0) >> D
    return r0, r1


def decompose(r, gamma2):
    """High-order/low-order decomposition (Algorithm 36).

    Returns (r0, r1) where r = r1*2*gamma2 + r0 (mod q) with
    |r0| <= gamma2. When r - r0 would be q - 1 the high part wraps to 0
    and r0 is decremented, so r0 can reach -gamma2 exactly.
    """
    alpha = 2 * gamma2
    m = (Q - 1) // alpha
    # Barrett reduction: r0 = r mod alpha
    t = (r * _BARRETT_MULT_2G[gamma2]) >> _BARRETT_SHIFT_2G
    r0 = r - t * alpha
    # Correction step (Barrett may underestimate by 1)
    corr = 1 + ((r0 - alpha) >> 63)  # 1 if r0 >= alpha
    r0 = r0 - corr * alpha
    t = t + corr
    # Branchless centering: if r0 > gamma2, subtract alpha
    gt = 1 + ((r0 - gamma2 - 1) >> 63)  # 1 if r0 > gamma2
    r0 = r0 - gt * alpha
    t = t + gt
    # Branchless special case: if t == m (i.e., r - r0 == q-1)
    # then r1 = 0, r0 -= 1
    diff_t = t - m
    eq = 1 + ((diff_t | -diff_t) >> 63)  # 1 if t == m, else 0
    r1 = t * (1 - eq)
    r0 = r0 - eq
    return r0, r1


def high_bits(r, gamma2):
    """Return high-order bits of r."""
    return decompose(r, gamma2)[1]


def low_bits(r, gamma2):
    """Return low-order bits of r."""
    return decompose(r, gamma2)[0]


def make_hint(z, r, gamma2):
    """Hint bit: True if high_bits(r) != high_bits(r + z) (Algorithm 39).

    z and r are in [0, q).
    """
    r1 = high_bits(r, gamma2)
    # Branchless (r + z) mod q
    s = r + z
    s_mod = s - Q * (1 + ((s - Q) >> 63))
    v1 = high_bits(s_mod, gamma2)
    diff = r1 - v1
    return bool(-((diff | -diff) >> 63))


def use_hint(h, r, gamma2):
    """Recover corrected high bits of r using hint bit h (Algorithm 40).

    h=0 returns high_bits(r); h=1 moves it one step towards the side r0
    points at, wrapping modulo m = (q-1) / (2*gamma2).
    """
    m = (Q - 1) // (2 * gamma2)
    h = int(h)
    r0, r1 = decompose(r, gamma2)
    # Branchless sign of r0: adjustment = +1 if r0 > 0, -1 if r0 <= 0
    is_pos = 1 + ((r0 - 1) >> 63)
    adj = 2 * is_pos - 1
    r1_adj = r1 + adj
    # Branchless mod m for r1_adj in [-1, m]
    mask_neg = r1_adj >> 63
    r1_adj = r1_adj - mask_neg * m
    mask_over = 1 + ((r1_adj - m) >> 63)
    r1_adj = r1_adj - mask_over * m
    # Select: h=0 -> r1, h=1 -> r1_adj
    return r1 * (1 - h) + r1_adj * h


# ── Vector Forms ──────────────────────────────────────────────────

def vec_power2round(t):
    """Apply power2round to a vector; returns (t0, t1) with t0 mod q."""
    t0, t1 = [], []
    for p in t:
        lo, hi = [], []
        for x in p:
            r0, r1 = power2round(x)
            lo.append(r0 + ((r0 >> 63) & Q))
            hi.append(r1)
        t0.append(lo)
        t1.append(hi)
    return t0, t1


def vec_high_bits(w, gamma2):
    return [[high_bits(x, gamma2) for x in p] for p in w]


def vec_low_bits(w, gamma2):
    """Low bits of a vector, stored mod q."""
    out = []
    for p in w:
        row = []
        for x in p:
            r0 = low_bits(x, gamma2)
            row.append(r0 + ((r0 >> 63) & Q))
        out.append(row)
    return out


def vec_make_hint(z, r, gamma2):
    """Hint vector for z and r; returns (h, number of ones)."""
    h = []
    count = 0
    for zp, rp in zip(z, r):
        row = [int(make_hint(zp[j], rp[j], gamma2)) for j in range(len(rp))]
        count += sum(row)
        h.append(row)
    return h, count


def vec_use_hint(h, r, gamma2):
    return [[use_hint(hp[j], rp[j], gamma2) for j in range(len(rp))]
            for hp, rp in zip(h, r)]
