# Copyright (c) 2026 Signer — MIT License

"""ML-DSA key generation, signing and verification (FIPS 204 Section 6).

Two layers:

Structured:
    keygen_internal(params, seed)      -> (PublicKey, PrivateKey)
    sign_internal(sk, message)         -> Signature
    verify_internal(pk, message, sig)  -> bool

Bytes (parameter set inferred from the key length):
    ml_keygen(seed=None, params=ML_DSA_65)  -> (pk_bytes, sk_bytes)
    ml_sign(sk_bytes, message)              -> sig_bytes
    ml_verify(pk_bytes, message, sig_bytes) -> bool
    ml_pk_from_sk(sk_bytes)                 -> pk_bytes

Signing is deterministic: rho'' = H(K || 0^32 || mu). The message
representative is mu = H(tr || M) with no context-string prefix.

Failure semantics:
    - Malformed keys or signatures raise a `DecodeError` subclass.
    - A well-formed signature that does not verify returns False.
    - A signing loop that exceeds its attempt cap or deadline raises
      `SigningAttemptsExceededError`.
"""

import hashlib
import hmac
import os
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import structlog

from .errors import (
    DecodeError,
    InternalError,
    InvalidLengthError,
    MalformedHintError,
    SigningAttemptsExceededError,
    UnknownParameterSetError,
)
from .memory import mlock, munlock, secure_zero
from .packing import (
    decode_pk,
    decode_sig,
    decode_sk,
    encode_pk,
    encode_sig,
    encode_sk,
    encode_w1,
)
from .params import (
    D,
    DEFAULT_MAX_SIGN_ATTEMPTS,
    ML_DSA_65,
    MU_SIZE,
    PARAMETER_SETS,
    RHO_PRIME_SIZE,
    SEED_SIZE,
    TR_SIZE,
    ParameterSet,
    from_public_key_length,
    from_secret_key_length,
)
from .ring import (
    mat_vec_ntt,
    norm_exceeds,
    ntt,
    poly_zero,
    sub,
    vec_add,
    vec_inv_ntt_tomont,
    vec_ntt,
    vec_scale_ntt,
    vec_sub,
)
from .rounding import (
    vec_high_bits,
    vec_low_bits,
    vec_make_hint,
    vec_power2round,
    vec_use_hint,
)
from .sampling import expand_a, expand_mask, expand_s, sample_in_ball

logger = structlog.get_logger()

Poly = List[int]
PolyVec = List[Poly]

_RND_DETERMINISTIC = bytes(32)


def _h(data, size):
    """H from FIPS 204 Section 3.7: SHAKE-256 truncated to `size` bytes."""
    return hashlib.shake_256(data).digest(size)


# ── Key and Signature Types ───────────────────────────────────────

@dataclass(frozen=True)
class PublicKey:
    """ML-DSA public key: rho, t1 and the cached digest tr = H(pk)."""
    params: ParameterSet
    rho: bytes
    t1: PolyVec = field(repr=False)
    tr: bytes = field(repr=False)

    def encode(self) -> bytes:
        return encode_pk(self.rho, self.t1)

    @classmethod
    def decode(cls, data, params: Optional[ParameterSet] = None) -> "PublicKey":
        data = bytes(data)
        if params is None:
            params = _params_for("public key", data, from_public_key_length, "pk_size")
        rho, t1 = decode_pk(data, params)
        return cls(params, rho, t1, _h(data, TR_SIZE))


@dataclass(frozen=True)
class PrivateKey:
    """ML-DSA secret key. Secret fields are kept out of repr()."""
    params: ParameterSet
    rho: bytes
    key: bytes = field(repr=False)
    tr: bytes = field(repr=False)
    s1: PolyVec = field(repr=False)
    s2: PolyVec = field(repr=False)
    t0: PolyVec = field(repr=False)

    def encode(self) -> bytes:
        return encode_sk(self.rho, self.key, self.tr, self.s1, self.s2, self.t0,
                         self.params)

    @classmethod
    def decode(cls, data, params: Optional[ParameterSet] = None) -> "PrivateKey":
        if params is None:
            params = _params_for("secret key", data, from_secret_key_length, "sk_size")
        return cls(params, *decode_sk(data, params))


@dataclass(frozen=True)
class Signature:
    """ML-DSA signature (c_tilde, z, h)."""
    params: ParameterSet
    c_tilde: bytes
    z: PolyVec = field(repr=False)
    h: PolyVec = field(repr=False)

    @property
    def hint_count(self) -> int:
        return sum(sum(p) for p in self.h)

    def encode(self) -> bytes:
        return encode_sig(self.c_tilde, self.z, self.h, self.params)

    @classmethod
    def decode(cls, data, params: ParameterSet) -> "Signature":
        return cls(params, *decode_sig(data, params))


def _params_for(what, data, resolver, size_attr):
    try:
        return resolver(len(data))
    except UnknownParameterSetError as exc:
        sizes = "/".join(str(getattr(p, size_attr)) for p in PARAMETER_SETS)
        raise InvalidLengthError(what, sizes, len(data)) from exc


# ── Core Algorithms ────────────────────────────────────────────────

def _compute_t(A_hat, s1, s2):
    """t = A*s1 + s2 (via NTT)."""
    return vec_add(vec_inv_ntt_tomont(mat_vec_ntt(A_hat, vec_ntt(s1))), s2)


def keygen_internal(params: ParameterSet, seed: bytes) -> Tuple[PublicKey, PrivateKey]:
    """ML-DSA key generation (Algorithm 6, FIPS 204).

    Args:
        params: Parameter set.
        seed: 32-byte random seed (xi).
    """
    if len(seed) != SEED_SIZE:
        raise ValueError(f"seed must be {SEED_SIZE} bytes, got {len(seed)}")

    # Expand seed into (rho, rho', K) via SHAKE-256, domain-separated by (k, l)
    expanded = _h(bytes(seed) + bytes([params.k, params.l]),
                  2 * SEED_SIZE + RHO_PRIME_SIZE)
    rho = expanded[:SEED_SIZE]
    rho_prime = expanded[SEED_SIZE:SEED_SIZE + RHO_PRIME_SIZE]
    key = expanded[SEED_SIZE + RHO_PRIME_SIZE:]

    A_hat = expand_a(rho, params)
    s1, s2 = expand_s(rho_prime, params)
    t0, t1 = vec_power2round(_compute_t(A_hat, s1, s2))

    tr = _h(encode_pk(rho, t1), TR_SIZE)
    logger.info("mldsa_keygen", parameter_set=params.name)
    return (PublicKey(params, rho, t1, tr),
            PrivateKey(params, rho, key, tr, s1, s2, t0))


def _abort_signing(params, attempts, reason):
    logger.error("mldsa_sign_attempts_exceeded", parameter_set=params.name,
                 attempts=attempts, reason=reason)
    return SigningAttemptsExceededError(attempts, reason)


def sign_internal(sk: PrivateKey, message: bytes,
                  max_attempts: Optional[int] = None,
                  deadline: Optional[float] = None) -> Signature:
    """Deterministic ML-DSA signing (Algorithm 7, FIPS 204, rnd = 0^32).

    The rejection loop runs at most `max_attempts` iterations (default
    `DEFAULT_MAX_SIGN_ATTEMPTS`) and, when `deadline` is given, for at
    most that many seconds. Either bound raises
    `SigningAttemptsExceededError`. The expected number of iterations is
    roughly 4 to 5 for the standard parameter sets.

    Memory hardening: K and rho'' are held in locked bytearrays and wiped
    in finally blocks.
    """
    params = sk.params
    if max_attempts is None:
        max_attempts = DEFAULT_MAX_SIGN_ATTEMPTS
    gamma1, gamma2, beta = params.gamma1, params.gamma2, params.beta

    key_buf = bytearray(sk.key)
    mlock(key_buf)
    try:
        s1_hat = vec_ntt(sk.s1)
        s2_hat = vec_ntt(sk.s2)
        t0_hat = vec_ntt(sk.t0)
        A_hat = expand_a(sk.rho, params)

        mu = _h(sk.tr + bytes(message), MU_SIZE)
        rho_pp_buf = bytearray(_h(bytes(key_buf) + _RND_DETERMINISTIC + mu, RHO_PRIME_SIZE))
        mlock(rho_pp_buf)
        try:
            started = time.monotonic()
            kappa = 0
            for attempt in range(1, max_attempts + 1):
                if deadline is not None and time.monotonic() - started > deadline:
                    raise _abort_signing(params, attempt - 1, "deadline")

                y = expand_mask(bytes(rho_pp_buf), kappa, params)
                kappa += params.l

                w = vec_inv_ntt_tomont(mat_vec_ntt(A_hat, vec_ntt(y)))
                w1 = vec_high_bits(w, gamma2)
                c_tilde = _h(mu + encode_w1(w1, params), params.c_tilde_size)
                c_hat = ntt(sample_in_ball(c_tilde, params.tau))

                z = vec_add(y, vec_inv_ntt_tomont(vec_scale_ntt(c_hat, s1_hat)))
                if norm_exceeds(z, gamma1 - beta):
                    continue

                w_cs2 = vec_sub(w, vec_inv_ntt_tomont(vec_scale_ntt(c_hat, s2_hat)))
                if norm_exceeds(vec_low_bits(w_cs2, gamma2), gamma2 - beta):
                    continue

                ct0 = vec_inv_ntt_tomont(vec_scale_ntt(c_hat, t0_hat))
                if norm_exceeds(ct0, gamma2):
                    continue

                neg_ct0 = [sub(poly_zero(), p) for p in ct0]
                h, ones = vec_make_hint(neg_ct0, vec_add(w_cs2, ct0), gamma2)
                if ones > params.omega:
                    continue

                logger.debug("mldsa_sign_complete", parameter_set=params.name,
                             attempts=attempt)
                return Signature(params, c_tilde, z, h)

            raise _abort_signing(params, max_attempts, "attempt cap")
        finally:
            munlock(rho_pp_buf)
            secure_zero(rho_pp_buf)
    finally:
        munlock(key_buf)
        secure_zero(key_buf)


def verify_internal(pk: PublicKey, message: bytes, sig: Signature) -> bool:
    """ML-DSA verification (Algorithm 8, FIPS 204).

    Raises `MalformedHintError` when the hint holds more than omega ones;
    such a hint has no valid encoding.
    """
    params = pk.params
    if sig.params != params:
        raise InvalidLengthError("signature", params.sig_size, sig.params.sig_size)
    if sig.hint_count > params.omega:
        raise MalformedHintError(
            f"hint has {sig.hint_count} ones, more than omega={params.omega}")

    if norm_exceeds(sig.z, params.gamma1 - params.beta):
        logger.debug("mldsa_verify_rejected", parameter_set=params.name, reason="z_norm")
        return False

    A_hat = expand_a(pk.rho, params)
    mu = _h(pk.tr + bytes(message), MU_SIZE)
    c_hat = ntt(sample_in_ball(sig.c_tilde, params.tau))

    # w' = A*z - c*t1*2^d, all products in NTT domain
    az = mat_vec_ntt(A_hat, vec_ntt(sig.z))
    t1_hat = vec_ntt([[c << D for c in p] for p in pk.t1])
    w_approx = vec_inv_ntt_tomont(vec_sub(az, vec_scale_ntt(c_hat, t1_hat)))

    w1 = vec_use_hint(sig.h, w_approx, params.gamma2)
    c_tilde_check = _h(mu + encode_w1(w1, params), params.c_tilde_size)

    if not hmac.compare_digest(sig.c_tilde, c_tilde_check):
        logger.debug("mldsa_verify_rejected", parameter_set=params.name, reason="challenge")
        return False
    return True


# ── Byte-level API ─────────────────────────────────────────────────

def ml_keygen(seed=None, params=ML_DSA_65):
    """ML-DSA key generation over bytes.

    Args:
        seed: 32-byte seed (xi). Drawn from os.urandom when omitted.
        params: Parameter set (default ML-DSA-65).

    Returns:
        (pk_bytes, sk_bytes) tuple.
    """
    if seed is None:
        seed = os.urandom(SEED_SIZE)
    pk, sk = keygen_internal(params, seed)
    return pk.encode(), sk.encode()


def ml_pk_from_sk(sk_bytes):
    """Reconstruct the public key from a secret key.

    Recomputes t1 = (A*s1 + s2) >> d from the secret vectors.
    """
    sk = PrivateKey.decode(sk_bytes)
    A_hat = expand_a(sk.rho, sk.params)
    _, t1 = vec_power2round(_compute_t(A_hat, sk.s1, sk.s2))
    return encode_pk(sk.rho, t1)


def ml_sign(sk_bytes, message, *, max_attempts=None, deadline=None):
    """Sign `message` with an encoded secret key.

    Fault injection countermeasure: the signature is verified against the
    public key recomputed from the secret key before it is returned.

    Raises:
        DecodeError: sk_bytes has a wrong length or invalid coefficients.
        SigningAttemptsExceededError: the rejection loop hit its bound.
        InternalError: verify-after-sign detected a fault.
    """
    sk_buf = bytearray(sk_bytes)
    mlock(sk_buf)
    try:
        sk = PrivateKey.decode(sk_buf)
        sig = sign_internal(sk, message, max_attempts=max_attempts, deadline=deadline)
        sig_bytes = sig.encode()

        pk = PublicKey.decode(ml_pk_from_sk(sk_buf), sk.params)
        if pk.tr != sk.tr or not verify_internal(pk, message, sig):
            raise InternalError("ML-DSA verify-after-sign failed (fault detected)")
        return sig_bytes
    finally:
        munlock(sk_buf)
        secure_zero(sk_buf)


def ml_verify(pk_bytes, message, sig_bytes):
    """Verify an encoded signature against an encoded public key.

    Returns:
        True if the signature is valid, False if it is well-formed but
        does not verify.

    Raises:
        DecodeError: the public key or signature is malformed (wrong
            length, |z| >= gamma1, invalid hint encoding).
    """
    try:
        pk = PublicKey.decode(pk_bytes)
        sig = Signature.decode(bytes(sig_bytes), pk.params)
    except DecodeError as exc:
        logger.warning("mldsa_verify_decode_failed", error=type(exc).__name__)
        raise
    return verify_internal(pk, message, sig)
