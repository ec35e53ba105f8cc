# Copyright (c) 2026 Signer — MIT License

"""Bit packing and the ML-DSA wire encodings (FIPS 204 Section 7.1-7.2).

Layouts (all fields little-endian bit streams):

    public key   rho(32) || t1 (k polys x 10 bits)
    secret key   rho(32) || K(32) || tr(64)
                 || s1 (l polys) || s2 (k polys)   eta - c, bitlen(2*eta) bits
                 || t0 (k polys)                   2^12 - c, 13 bits
    signature    c_tilde(lambda/4) || z (l polys)  gamma1 - c, gamma1_bits bits
                 || hint(omega + k)

The hint section lists the positions of the 1s in increasing order per
polynomial, followed by k running counts; unused index slots are zero.

Decoding is strict. Wrong lengths, out-of-range coefficients and
malformed hints raise a `DecodeError` subclass rather than being
coerced into some valid-looking value.
"""

from .errors import (
    BitOverflowError,
    InvalidBitWidthError,
    InvalidLengthError,
    MalformedHintError,
    OutOfBoundsCoefficientError,
    TruncatedInputError,
)
from .params import Q, N, D, SEED_SIZE, TR_SIZE, T0_BITS, T1_BITS

_HALF_Q = (Q - 1) >> 1
_T0_OFFSET = 1 << (D - 1)   # 4096


# ── Generic Bit Packing ───────────────────────────────────────────

def _check_width(width):
    if not isinstance(width, int) or not 1 <= width <= 32:
        raise InvalidBitWidthError(width)


def pack_bits(values, width):
    """Pack non-negative ints into bytes using `width` bits each."""
    _check_width(width)
    limit = 1 << width
    buf = bytearray()
    acc = 0
    acc_bits = 0
    for v in values:
        if v < 0 or v >= limit:
            raise BitOverflowError(v, width)
        acc |= v << acc_bits
        acc_bits += width
        while acc_bits >= 8:
            buf.append(acc & 0xFF)
            acc >>= 8
            acc_bits -= 8
    if acc_bits > 0:
        buf.append(acc & 0xFF)
    return bytes(buf)


def unpack_bits(data, width, count):
    """Unpack `count` values of `width` bits each from the front of data."""
    _check_width(width)
    need = (width * count + 7) // 8
    if len(data) < need:
        raise TruncatedInputError(need, len(data))
    values = []
    acc = 0
    acc_bits = 0
    pos = 0
    mask = (1 << width) - 1
    for _ in range(count):
        while acc_bits < width:
            acc |= data[pos] << acc_bits
            pos += 1
            acc_bits += 8
        values.append(acc & mask)
        acc >>= width
        acc_bits -= width
    return values


def _pack_offset(coeffs, a, bits):
    """Pack signed coefficients (stored mod q) as a - c in `bits` bits."""
    fields = []
    for c in coeffs:
        neg = 1 + ((c - _HALF_Q - 1) >> 63)
        fields.append(a - (c - neg * Q))
    return pack_bits(fields, bits)


def _unpack_offset(data, a, bits):
    """Inverse of _pack_offset; returns signed coefficients a - field."""
    return [a - f for f in unpack_bits(data, bits, N)]


def _poly_bytes(bits):
    return N * bits // 8


def _split(data, sizes):
    out = []
    pos = 0
    for size in sizes:
        out.append(data[pos:pos + size])
        pos += size
    return out


def _check_length(what, data, expected):
    if len(data) != expected:
        raise InvalidLengthError(what, expected, len(data))


# ── Public Key Encoding ────────────────────────────────────────────

def encode_pk(rho, t1):
    """Encode public key: rho (32 bytes) || bitpack(t1, 10 bits each).

    Algorithm 22, FIPS 204. t1 coefficients are in [0, 2^10).
    """
    buf = bytearray(rho)
    for p in t1:
        buf.extend(pack_bits(p, T1_BITS))
    return bytes(buf)


def decode_pk(data, params):
    """Decode public key into (rho, t1)."""
    _check_length("public key", data, params.pk_size)
    rho = bytes(data[:SEED_SIZE])
    step = _poly_bytes(T1_BITS)
    t1 = []
    offset = SEED_SIZE
    for _ in range(params.k):
        t1.append(unpack_bits(data[offset:offset + step], T1_BITS, N))
        offset += step
    return rho, t1


# ── Secret Key Encoding ────────────────────────────────────────────

def encode_sk(rho, key, tr, s1, s2, t0, params):
    """Encode secret key (Algorithm 24, FIPS 204).

    Layout: rho(32) || K(32) || tr(64) || bitpack(s1) || bitpack(s2) || bitpack(t0)
    """
    buf = bytearray(rho)
    buf.extend(key)
    buf.extend(tr)
    for p in s1:
        buf.extend(_pack_offset(p, params.eta, params.eta_bits))
    for p in s2:
        buf.extend(_pack_offset(p, params.eta, params.eta_bits))
    for p in t0:
        buf.extend(_pack_offset(p, _T0_OFFSET, T0_BITS))
    return bytes(buf)


def _decode_eta_poly(data, params):
    eta = params.eta
    coeffs = []
    for c in _unpack_offset(data, eta, params.eta_bits):
        if c < -eta:
            raise OutOfBoundsCoefficientError("secret", c, eta)
        coeffs.append(c + ((c >> 63) & Q))
    return coeffs


def decode_sk(data, params):
    """Decode secret key into (rho, K, tr, s1, s2, t0), coefficients mod q."""
    _check_length("secret key", data, params.sk_size)
    eta_step = _poly_bytes(params.eta_bits)
    t0_step = _poly_bytes(T0_BITS)
    sizes = ([SEED_SIZE, SEED_SIZE, TR_SIZE]
             + [eta_step] * (params.l + params.k)
             + [t0_step] * params.k)
    parts = _split(data, sizes)
    rho, key, tr = bytes(parts[0]), bytes(parts[1]), bytes(parts[2])
    polys = parts[3:]
    s1 = [_decode_eta_poly(chunk, params) for chunk in polys[:params.l]]
    s2 = [_decode_eta_poly(chunk, params) for chunk in polys[params.l:params.l + params.k]]
    t0 = []
    for chunk in polys[params.l + params.k:]:
        t0.append([c + ((c >> 63) & Q) for c in _unpack_offset(chunk, _T0_OFFSET, T0_BITS)])
    return rho, key, tr, s1, s2, t0


# ── Hint Encoding ──────────────────────────────────────────────────

def encode_hint(h, params):
    """Encode hint vector as omega + k bytes (Algorithm 20)."""
    omega = params.omega
    hint_buf = bytearray(omega + params.k)
    idx = 0
    for i, p in enumerate(h):
        for j in range(N):
            if p[j] != 0:
                if idx >= omega:
                    raise MalformedHintError(f"hint has more than omega={omega} ones")
                hint_buf[idx] = j
                idx += 1
        hint_buf[omega + i] = idx
    return bytes(hint_buf)


def decode_hint(data, params):
    """Decode the hint section (Algorithm 21).

    Rejects counts that decrease or exceed omega, indices that are not
    strictly increasing within a polynomial, and nonzero padding.
    """
    omega = params.omega
    _check_length("hint", data, omega + params.k)
    h = [[0] * N for _ in range(params.k)]
    idx = 0
    for i in range(params.k):
        end = data[omega + i]
        if end < idx or end > omega:
            raise MalformedHintError(f"hint count {end} invalid for polynomial {i}")
        first = idx
        while idx < end:
            if idx > first and data[idx - 1] >= data[idx]:
                raise MalformedHintError(f"hint indices not increasing in polynomial {i}")
            h[i][data[idx]] = 1
            idx += 1
    for j in range(idx, omega):
        if data[j] != 0:
            raise MalformedHintError("nonzero byte in hint padding")
    return h


# ── Signature Encoding ─────────────────────────────────────────────

def encode_sig(c_tilde, z, h, params):
    """Encode signature (Algorithm 26, FIPS 204).

    Layout: c_tilde || bitpack(gamma1 - z) || hint_encode(h)
    """
    buf = bytearray(c_tilde)
    for p in z:
        buf.extend(_pack_offset(p, params.gamma1, params.gamma1_bits))
    buf.extend(encode_hint(h, params))
    return bytes(buf)


def decode_sig(data, params):
    """Decode signature into (c_tilde, z, h), z coefficients mod q.

    Every z coefficient must satisfy |z| < gamma1.
    """
    _check_length("signature", data, params.sig_size)
    z_step = _poly_bytes(params.gamma1_bits)
    sizes = [params.c_tilde_size] + [z_step] * params.l + [params.omega + params.k]
    parts = _split(data, sizes)
    c_tilde = bytes(parts[0])
    gamma1 = params.gamma1
    z = []
    for chunk in parts[1:1 + params.l]:
        coeffs = []
        for c in _unpack_offset(chunk, gamma1, params.gamma1_bits):
            if c >= gamma1 or c <= -gamma1:
                raise OutOfBoundsCoefficientError("z", c, gamma1)
            coeffs.append(c + ((c >> 63) & Q))
        z.append(coeffs)
    h = decode_hint(parts[-1], params)
    return c_tilde, z, h


def encode_w1(w1, params):
    """Pack the high bits w1 for hashing into the challenge (Algorithm 28)."""
    buf = bytearray()
    for p in w1:
        buf.extend(pack_bits(p, params.w1_bits))
    return bytes(buf)
