# Copyright (c) 2026 Signer — MIT License

"""Polynomial ring Z_q[X]/(X^256 + 1) with q = 8380417.

Polynomials are plain lists of 256 ints. Every function returns a fresh
list with coefficients in canonical form [0, q); inputs are never
mutated. Whether a list holds coefficients or NTT evaluations is up to
the caller, which must convert explicitly before mixing the two.

Multiplication follows the Montgomery scheme of the reference
implementation: twiddle factors are stored pre-multiplied by R = 2^32,
so a butterfly needs one `montgomery_reduce` instead of a full modular
reduction. `pointwise_montgomery` leaves a factor R^-1 on its product,
which `inv_ntt_tomont` cancels in its final scaling step:

    inv_ntt_tomont(pointwise_montgomery(ntt(a), ntt(b))) == a * b

`inv_ntt` is the exact inverse of `ntt` (no Montgomery factor).

Best-effort constant-time: reductions use shifts and masks of the form
`(x - y) >> 63` instead of `%` and data-dependent branches.
"""

from .params import Q, N

# ── Montgomery Constants ──────────────────────────────────────────

MONT = pow(2, 32, Q)                # R mod q = 4193792
QINV = pow(Q, -1, 1 << 32)          # q^-1 mod 2^32 = 58728449
_MONT2 = MONT * MONT % Q            # R^2 mod q, for to_montgomery
_N_INV = pow(N, Q - 2, Q)

# Final inverse-NTT scale factors (applied through montgomery_reduce).
_F_TOMONT = _MONT2 * _N_INV % Q     # R^2/256 -> result carries a factor R
_F_PLAIN = MONT * _N_INV % Q        # R/256   -> exact inverse

_HALF_Q = (Q - 1) >> 1              # 4190208
_MASK32 = 0xFFFFFFFF


# ── Scalar Reductions ─────────────────────────────────────────────

def montgomery_reduce(a):
    """Return r = a * 2^-32 mod q, with -q < r < q for |a| < 2^31 * q."""
    t = (a * QINV) & _MASK32
    t -= (t >> 31) << 32            # reinterpret as signed 32-bit
    return (a - t * Q) >> 32


def reduce32(a):
    """Representative of a mod q in [-6283009, 6283008] for |a| < 2^31 - 2^22."""
    t = (a + (1 << 22)) >> 23
    return a - t * Q


def caddq(a):
    """Add q if a is negative. Branchless."""
    return a + ((a >> 63) & Q)


def canonical(x):
    """Signed representative of x in [-(q-1)/2, (q-1)/2] for x in [0, q)."""
    neg = 1 + ((x - _HALF_Q - 1) >> 63)     # 1 if x > (q-1)/2
    return x - neg * Q


def _ct_add_mod_q(a, b):
    """(a + b) mod q for a, b in [0, q). Branchless."""
    r = a + b
    mask = 1 + ((r - Q) >> 63)
    return r - mask * Q


def _ct_sub_mod_q(a, b):
    """(a - b) mod q for a, b in [0, q). Branchless."""
    r = a - b
    mask = r >> 63
    return r - mask * Q


# ── NTT Constants ─────────────────────────────────────────────────

def _bitrev8(n):
    """Reverse the lower 8 bits of an integer."""
    r = 0
    for _ in range(8):
        r = (r << 1) | (n & 1)
        n >>= 1
    return r


# Primitive 512th root of unity modulo q.
_ROOT = 1753

# 1753^bitrev8(i) in Montgomery form. Index 0 is unused by the transforms.
ZETAS = [pow(_ROOT, _bitrev8(i), Q) * MONT % Q for i in range(N)]
ZETAS[0] = 0


# ── Polynomial Arithmetic ─────────────────────────────────────────

def poly_zero():
    """Zero polynomial."""
    return [0] * N


def freeze(a):
    """Map every coefficient to [0, q).

    One reduce32 step followed by caddq, so each input must satisfy
    |x| < 2^31 - 2^22. NTT, inverse NTT and Montgomery outputs all do.
    """
    out = []
    for x in a:
        x -= ((x + (1 << 22)) >> 23) * Q
        out.append(x + ((x >> 63) & Q))
    return out


def add(a, b):
    """Coefficient-wise addition mod q. Branchless."""
    return [_ct_add_mod_q(a[i], b[i]) for i in range(N)]


def sub(a, b):
    """Coefficient-wise subtraction mod q. Branchless."""
    return [_ct_sub_mod_q(a[i], b[i]) for i in range(N)]


def to_montgomery(a):
    """Multiply every coefficient by R = 2^32 mod q."""
    return freeze([montgomery_reduce(_MONT2 * x) for x in a])


def from_montgomery(a):
    """Divide every coefficient by R = 2^32 mod q."""
    return freeze([montgomery_reduce(x) for x in a])


def pointwise_montgomery(a, b):
    """Coefficient-wise a * b * 2^-32 mod q (NTT-domain multiplication)."""
    out = []
    for i in range(N):
        x = a[i] * b[i]
        t = (x * QINV) & _MASK32
        t -= (t >> 31) << 32
        r = (x - t * Q) >> 32
        out.append(r + ((r >> 63) & Q))
    return out


def ntt(p):
    """Forward NTT (FIPS 204 Algorithm 41).

    Cooley-Tukey butterflies, lengths 128 down to 1, consuming ZETAS[1..255]
    in order. Coefficients grow to at most 9q in magnitude before the final
    freeze.
    """
    a = list(p)
    _q = Q
    _qinv = QINV
    k = 0
    length = 128
    while length >= 1:
        start = 0
        while start < N:
            k += 1
            zeta = ZETAS[k]
            for j in range(start, start + length):
                x = zeta * a[j + length]
                t = (x * _qinv) & _MASK32
                t -= (t >> 31) << 32
                t = (x - t * _q) >> 32
                a[j + length] = a[j] - t
                a[j] = a[j] + t
            start += 2 * length
        length >>= 1
    return freeze(a)


def _inv_ntt(p, f):
    a = list(p)
    _q = Q
    _qinv = QINV
    k = N
    length = 1
    while length < N:
        start = 0
        while start < N:
            k -= 1
            zeta = -ZETAS[k]
            for j in range(start, start + length):
                t = a[j]
                a[j] = t + a[j + length]
                x = zeta * (t - a[j + length])
                u = (x * _qinv) & _MASK32
                u -= (u >> 31) << 32
                a[j + length] = (x - u * _q) >> 32
            start += 2 * length
        length <<= 1
    return freeze([montgomery_reduce(f * x) for x in a])


def inv_ntt_tomont(p):
    """Inverse NTT (FIPS 204 Algorithm 42) leaving a factor R = 2^32.

    Used after `pointwise_montgomery`, whose R^-1 this factor cancels.
    """
    return _inv_ntt(p, _F_TOMONT)


def inv_ntt(p):
    """Exact inverse of `ntt`."""
    return _inv_ntt(p, _F_PLAIN)


# ── Module (Vector/Matrix) Operations ─────────────────────────────

def vec_ntt(v):
    """Apply NTT to each polynomial in a vector."""
    return [ntt(p) for p in v]


def vec_inv_ntt_tomont(v):
    """Apply inverse NTT (Montgomery-correcting) to each polynomial."""
    return [inv_ntt_tomont(p) for p in v]


def vec_add(u, v):
    return [add(u[i], v[i]) for i in range(len(u))]


def vec_sub(u, v):
    return [sub(u[i], v[i]) for i in range(len(u))]


def vec_scale_ntt(c_hat, v):
    """Multiply every polynomial of an NTT-domain vector by c_hat."""
    return [pointwise_montgomery(c_hat, p) for p in v]


def mat_vec_ntt(A, v):
    """Matrix-vector product in NTT domain.

    A is k×l matrix of NTT-domain polynomials.
    v is l-vector of NTT-domain polynomials.
    Returns k-vector, Montgomery-scaled: pass through `inv_ntt_tomont`.
    """
    result = []
    for row in A:
        acc = poly_zero()
        for j in range(len(v)):
            acc = add(acc, pointwise_montgomery(row[j], v[j]))
        result.append(acc)
    return result


# ── Norms ─────────────────────────────────────────────────────────

def _abs_centered(x):
    neg = 1 + ((x - _HALF_Q - 1) >> 63)
    return x - neg * (2 * x - Q)


def infinity_norm(vec):
    """Largest |canonical(c)| over every coefficient of a vector."""
    return max(_abs_centered(x) for p in vec for x in p)


def norm_exceeds(vec, bound):
    """True if any coefficient has |canonical(c)| >= bound.

    Scans the whole vector without an early exit.
    """
    reject = 0
    for p in vec:
        for x in p:
            reject |= 1 + ((_abs_centered(x) - bound) >> 63)
    return bool(reject)
