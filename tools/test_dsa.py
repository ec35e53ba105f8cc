# Copyright (c) 2026 Signer — MIT License

"""Test suite for ML-DSA (FIPS 204) key generation, signing and verification.

Tests:
    - Key and signature sizes for all three parameter sets
    - Deterministic keygen and signing
    - Sign -> verify roundtrip, including adversarial messages
    - Known-answer pins (pk, sk, sig) for all three parameter sets
    - Tamper detection (message, c_tilde, z, hint) and a seeded bit-flip sweep
    - Length gating and parameter-set mismatch
    - Public key reconstruction from the secret key
    - Signing bounds (attempt cap, deadline)
    - Structured log events
    - Secret fields kept out of repr()

Set MLDSA_SLOW_TESTS=1 to also run the many-keypair sweeps.

Run from the project root:
    python -m tools.test_dsa
"""

import hashlib
import os
import random
import sys
import time
import unittest

import structlog
from structlog.testing import capture_logs

# Ensure project root is on the import path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from mldsa.dsa import (
    PublicKey, PrivateKey, Signature,
    keygen_internal, sign_internal, verify_internal,
    ml_keygen, ml_sign, ml_verify, ml_pk_from_sk,
)
from mldsa.errors import (
    DecodeError, InvalidLengthError, MalformedHintError,
    SigningAttemptsExceededError,
)
from mldsa.params import Q, N, ML_DSA_44, ML_DSA_65, ML_DSA_87, PARAMETER_SETS
from mldsa.ring import infinity_norm
from mldsa.selftest import EDGE_MESSAGES

_SLOW = os.environ.get("MLDSA_SLOW_TESTS") == "1"

_SEED = bytes(32)
_MESSAGE = b"ml-dsa test message"


# ── Known-Answer Vectors ─────────────────────────────────────────
#
# All-zero seed, deterministic signing (rnd = 0^32) of _KAT_MESSAGE.
# Cross-checked against an independent FIPS 204 implementation; any
# change to sampling, packing or rounding shows up here first.

_KAT_SEED = bytes(32)
_KAT_MESSAGE = b"ml-dsa self-test message"

# name -> (SHA-256 of pk, SHA-256 of sk, SHA-256 of sig, first 16 bytes of pk)
_KAT = {
    "ML-DSA-44": (
        "eb4e7302842153b0fa19e8620739ad258af4929c26dd89079a7ec7d4282208e1",
        "0f9086044d77b6d610c7e92418d9f70a398c69febc7e99f8254aaea98dcfbe77",
        "4ae8ff7abd0b29a587320872f47c1f8b38254b86b22e55e1310daedb3c03bad1",
        "ba71f9f64e11baeb58fa9c6fbb6e14e6",
    ),
    "ML-DSA-65": (
        "085ba380ff386dd52e42349c6eb88489d6058ea541a4e3fb0dce9a3fd1f7a911",
        "cfcb5e7edf4348f712b7002b0553d28929856936c98e4adf172e51d5c9934262",
        "0a4a1212d63bd47014841f2af8bdfc0fad47eb880599dbed28c5b152de33b7d5",
        "424b2f267e58d5b3b44d71acfc6a656b",
    ),
    "ML-DSA-87": (
        "1d4a461707fc50a7ec93a9c02454778a8b82321ca460eea345e7bbfaff38a3aa",
        "370d670bcc5cac393d9c6a6d8f784b418a313280c9d3247d305ae18dac8aef75",
        "8c34738640da5c430d8b9c03de243aaa48e9276135c298fa2596151d4b036750",
        "e45ffc8cc73db885dc662e62a18cd8e3",
    ),
}


class TestKnownAnswers(unittest.TestCase):
    """Byte-exact regression pins for every parameter set."""

    @classmethod
    def setUpClass(cls):
        cls.outputs = {}
        for params in PARAMETER_SETS:
            pk, sk = ml_keygen(_KAT_SEED, params)
            cls.outputs[params.name] = (pk, sk, ml_sign(sk, _KAT_MESSAGE))

    def test_pk_head(self):
        for name, (pk, _, _) in self.outputs.items():
            self.assertEqual(pk[:16].hex(), _KAT[name][3], name)

    def test_pk_sha256(self):
        for name, (pk, _, _) in self.outputs.items():
            self.assertEqual(hashlib.sha256(pk).hexdigest(), _KAT[name][0], name)

    def test_sk_sha256(self):
        for name, (_, sk, _) in self.outputs.items():
            self.assertEqual(hashlib.sha256(sk).hexdigest(), _KAT[name][1], name)

    def test_sig_sha256(self):
        for name, (_, _, sig) in self.outputs.items():
            self.assertEqual(hashlib.sha256(sig).hexdigest(), _KAT[name][2], name)

    def test_sig_verifies(self):
        for name, (pk, _, sig) in self.outputs.items():
            self.assertTrue(ml_verify(pk, _KAT_MESSAGE, sig), name)


class TestKeygen(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.pk, cls.sk = ml_keygen(_SEED, ML_DSA_44)

    def test_sizes_44(self):
        self.assertEqual(len(self.pk), 1312)
        self.assertEqual(len(self.sk), 2560)

    def test_deterministic(self):
        pk2, sk2 = ml_keygen(_SEED, ML_DSA_44)
        self.assertEqual(pk2, self.pk)
        self.assertEqual(sk2, self.sk)

    def test_seed_sensitivity(self):
        pk2, _ = ml_keygen(b"\x01" + bytes(31), ML_DSA_44)
        self.assertNotEqual(pk2, self.pk)

    def test_parameter_set_domain_separation(self):
        """The same seed gives unrelated rho for different parameter sets."""
        pk65, _ = ml_keygen(_SEED, ML_DSA_65)
        self.assertNotEqual(pk65[:32], self.pk[:32])

    def test_shared_prefix(self):
        """sk starts with rho, then K, then tr = H(pk)."""
        self.assertEqual(self.sk[:32], self.pk[:32])
        self.assertEqual(self.sk[64:128], hashlib.shake_256(self.pk).digest(64))

    def test_random_seed(self):
        pk, sk = ml_keygen(params=ML_DSA_44)
        self.assertEqual(len(pk), ML_DSA_44.pk_size)
        self.assertEqual(len(sk), ML_DSA_44.sk_size)

    def test_bad_seed_length(self):
        with self.assertRaises(ValueError):
            keygen_internal(ML_DSA_44, bytes(31))

    def test_pk_from_sk(self):
        self.assertEqual(ml_pk_from_sk(self.sk), self.pk)

    def test_key_objects_roundtrip(self):
        pk = PublicKey.decode(self.pk)
        sk = PrivateKey.decode(self.sk)
        self.assertIs(pk.params, ML_DSA_44)
        self.assertEqual(pk.encode(), self.pk)
        self.assertEqual(sk.encode(), self.sk)
        self.assertEqual(pk.tr, sk.tr)

    def test_secret_vectors_small(self):
        sk = PrivateKey.decode(self.sk)
        self.assertLessEqual(infinity_norm(sk.s1), ML_DSA_44.eta)
        self.assertLessEqual(infinity_norm(sk.s2), ML_DSA_44.eta)
        self.assertLessEqual(infinity_norm(sk.t0), 1 << 12)

    def test_repr_hides_secrets(self):
        _, sk = keygen_internal(ML_DSA_44, _SEED)
        text = repr(sk)
        self.assertIn("ML-DSA-44", text)
        for name in ("key=", "s1=", "s2=", "t0=", "tr="):
            self.assertNotIn(name, text)
        self.assertNotIn(sk.key.hex(), text)


class TestSignVerify(unittest.TestCase):
    """Sign -> verify roundtrip and tamper detection on ML-DSA-44."""

    @classmethod
    def setUpClass(cls):
        cls.pk, cls.sk = ml_keygen(_SEED, ML_DSA_44)
        cls.sig = ml_sign(cls.sk, _MESSAGE)

    def test_signature_size(self):
        self.assertEqual(len(self.sig), 2420)

    def test_verify(self):
        self.assertTrue(ml_verify(self.pk, _MESSAGE, self.sig))

    def test_deterministic(self):
        self.assertEqual(ml_sign(self.sk, _MESSAGE), self.sig)

    def test_message_sensitivity(self):
        self.assertNotEqual(ml_sign(self.sk, _MESSAGE + b"!"), self.sig)

    def test_wrong_message(self):
        self.assertFalse(ml_verify(self.pk, b"tampered", self.sig))
        self.assertFalse(ml_verify(self.pk, _MESSAGE[:-1], self.sig))

    def test_wrong_key(self):
        other_pk, _ = ml_keygen(b"\x02" * 32, ML_DSA_44)
        self.assertFalse(ml_verify(other_pk, _MESSAGE, self.sig))

    def test_edge_messages(self):
        for msg in EDGE_MESSAGES:
            sig = ml_sign(self.sk, msg)
            self.assertTrue(ml_verify(self.pk, msg, sig), msg[:16])

    def test_signature_object_bounds(self):
        sig = Signature.decode(self.sig, ML_DSA_44)
        self.assertLess(infinity_norm(sig.z), ML_DSA_44.gamma1 - ML_DSA_44.beta)
        self.assertLessEqual(sig.hint_count, ML_DSA_44.omega)
        self.assertEqual(sig.encode(), self.sig)

    def _flip(self, pos, bit=0):
        data = bytearray(self.sig)
        data[pos] ^= 1 << bit
        return bytes(data)

    def test_tamper_c_tilde(self):
        for pos in (0, 15, ML_DSA_44.c_tilde_size - 1):
            self.assertFalse(ml_verify(self.pk, _MESSAGE, self._flip(pos)))

    def test_tamper_z(self):
        start = ML_DSA_44.c_tilde_size
        for pos in (start, start + 500, start + 2000):
            try:
                ok = ml_verify(self.pk, _MESSAGE, self._flip(pos, 3))
            except DecodeError:
                continue
            self.assertFalse(ok, f"z flip at {pos} accepted")

    def test_tamper_hint(self):
        params = ML_DSA_44
        hint_start = params.sig_size - (params.omega + params.k)
        for pos in (hint_start, hint_start + 1, params.sig_size - 1):
            try:
                ok = ml_verify(self.pk, _MESSAGE, self._flip(pos))
            except MalformedHintError:
                continue
            self.assertFalse(ok, f"hint flip at {pos} accepted")

    def test_tamper_sweep(self):
        """Seeded single-bit flips across z and the hint are never accepted."""
        rng = random.Random(204)
        start = ML_DSA_44.c_tilde_size
        flips = 1000 if _SLOW else 128
        accepted = []
        for _ in range(flips):
            pos = rng.randrange(start, len(self.sig))
            bit = rng.randrange(8)
            try:
                ok = ml_verify(self.pk, _MESSAGE, self._flip(pos, bit))
            except DecodeError:
                continue
            if ok:
                accepted.append((pos, bit))
        self.assertEqual(accepted, [])

    def test_dirty_hint_padding_rejected(self):
        data = bytearray(self.sig)
        data[-(ML_DSA_44.k + 1)] ^= 0x01
        sig = Signature.decode(self.sig, ML_DSA_44)
        if sig.hint_count < ML_DSA_44.omega:
            with self.assertRaises(MalformedHintError):
                ml_verify(self.pk, _MESSAGE, bytes(data))

    def test_signature_length_gating(self):
        for bad in (self.sig[:-1], self.sig + b"\x00", b""):
            with self.assertRaises(InvalidLengthError):
                ml_verify(self.pk, _MESSAGE, bad)

    def test_public_key_length_gating(self):
        with self.assertRaises(InvalidLengthError):
            ml_verify(self.pk[:-1], _MESSAGE, self.sig)

    def test_secret_key_length_gating(self):
        with self.assertRaises(InvalidLengthError):
            ml_sign(self.sk + b"\x00", _MESSAGE)

    def test_parameter_set_mismatch(self):
        pk65, _ = ml_keygen(_SEED, ML_DSA_65)
        with self.assertRaises(InvalidLengthError):
            ml_verify(pk65, _MESSAGE, self.sig)
        pk = PublicKey.decode(pk65)
        sig = Signature.decode(self.sig, ML_DSA_44)
        with self.assertRaises(InvalidLengthError):
            verify_internal(pk, _MESSAGE, sig)

    def test_oversized_z_returns_false(self):
        """A structurally valid z with |z| >= gamma1 - beta fails verification."""
        sig = Signature.decode(self.sig, ML_DSA_44)
        z = [list(p) for p in sig.z]
        z[0][0] = ML_DSA_44.gamma1 - ML_DSA_44.beta
        forged = Signature(ML_DSA_44, sig.c_tilde, z, sig.h)
        self.assertFalse(ml_verify(self.pk, _MESSAGE, forged.encode()))

    def test_excess_hint_count_rejected(self):
        """A hint with more than omega ones has no encoding and is refused."""
        sig = Signature.decode(self.sig, ML_DSA_44)
        h = [[1] * N for _ in range(ML_DSA_44.k)]
        forged = Signature(ML_DSA_44, sig.c_tilde, sig.z, h)
        with self.assertRaises(MalformedHintError):
            verify_internal(PublicKey.decode(self.pk), _MESSAGE, forged)

    def test_full_hint_fails_comparison(self):
        """Exactly omega ones passes the count gate and fails on w1."""
        sig = Signature.decode(self.sig, ML_DSA_44)
        h = [[0] * N for _ in range(ML_DSA_44.k)]
        for i in range(ML_DSA_44.omega):
            h[i % ML_DSA_44.k][i // ML_DSA_44.k] = 1
        forged = Signature(ML_DSA_44, sig.c_tilde, sig.z, h)
        self.assertFalse(verify_internal(PublicKey.decode(self.pk), _MESSAGE, forged))


class TestAllParameterSets(unittest.TestCase):

    def test_roundtrip(self):
        for params in PARAMETER_SETS:
            pk, sk = ml_keygen(bytes([params.level]) * 32, params)
            self.assertEqual(len(pk), params.pk_size)
            self.assertEqual(len(sk), params.sk_size)
            sig = ml_sign(sk, _MESSAGE)
            self.assertEqual(len(sig), params.sig_size)
            self.assertTrue(ml_verify(pk, _MESSAGE, sig), params.name)
            self.assertFalse(ml_verify(pk, _MESSAGE + b"x", sig), params.name)

    def test_structured_api(self):
        pk, sk = keygen_internal(ML_DSA_87, _SEED)
        sig = sign_internal(sk, _MESSAGE)
        self.assertTrue(verify_internal(pk, _MESSAGE, sig))
        self.assertEqual(len(sig.encode()), ML_DSA_87.sig_size)

    @unittest.skipUnless(_SLOW, "set MLDSA_SLOW_TESTS=1")
    def test_many_keypairs(self):
        for params in PARAMETER_SETS:
            for i in range(100):
                seed = hashlib.sha256(params.name.encode() + bytes([i])).digest()
                pk, sk = ml_keygen(seed, params)
                for msg in (EDGE_MESSAGES[i % len(EDGE_MESSAGES)], seed):
                    sig = ml_sign(sk, msg)
                    self.assertTrue(ml_verify(pk, msg, sig), f"{params.name} #{i}")


class TestSigningBounds(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.pk, cls.sk = keygen_internal(ML_DSA_44, _SEED)

    def test_zero_attempts(self):
        with self.assertRaises(SigningAttemptsExceededError) as ctx:
            sign_internal(self.sk, _MESSAGE, max_attempts=0)
        self.assertEqual(ctx.exception.attempts, 0)
        self.assertIsInstance(ctx.exception, RuntimeError)

    def test_expired_deadline(self):
        with self.assertRaises(SigningAttemptsExceededError):
            sign_internal(self.sk, _MESSAGE, deadline=-1.0)

    def test_byte_api_forwards_bounds(self):
        with self.assertRaises(SigningAttemptsExceededError):
            ml_sign(self.sk.encode(), _MESSAGE, max_attempts=0)

    def test_generous_bounds(self):
        sig = sign_internal(self.sk, _MESSAGE, max_attempts=1000, deadline=600.0)
        self.assertTrue(verify_internal(self.pk, _MESSAGE, sig))


class TestLogging(unittest.TestCase):

    def setUp(self):
        structlog.reset_defaults()

    def test_keygen_and_sign_events(self):
        with capture_logs() as logs:
            pk, sk = keygen_internal(ML_DSA_44, _SEED)
            sign_internal(sk, _MESSAGE)
        events = [e["event"] for e in logs]
        self.assertIn("mldsa_keygen", events)
        self.assertIn("mldsa_sign_complete", events)
        done = [e for e in logs if e["event"] == "mldsa_sign_complete"][0]
        self.assertEqual(done["parameter_set"], "ML-DSA-44")
        self.assertGreaterEqual(done["attempts"], 1)

    def test_attempts_exceeded_event(self):
        _, sk = keygen_internal(ML_DSA_44, _SEED)
        with capture_logs() as logs:
            with self.assertRaises(SigningAttemptsExceededError):
                sign_internal(sk, _MESSAGE, max_attempts=0)
        self.assertEqual(logs[-1]["event"], "mldsa_sign_attempts_exceeded")
        self.assertEqual(logs[-1]["log_level"], "error")

    def test_verify_rejection_event(self):
        pk, sk = keygen_internal(ML_DSA_44, _SEED)
        sig = sign_internal(sk, _MESSAGE)
        with capture_logs() as logs:
            self.assertFalse(verify_internal(pk, b"other", sig))
        self.assertEqual(logs[-1]["reason"], "challenge")

    def test_decode_failure_event(self):
        pk, _ = ml_keygen(_SEED, ML_DSA_44)
        with capture_logs() as logs:
            with self.assertRaises(InvalidLengthError):
                ml_verify(pk, _MESSAGE, b"\x00" * 10)
        self.assertEqual(logs[-1]["event"], "mldsa_verify_decode_failed")
        self.assertEqual(logs[-1]["error"], "InvalidLengthError")


# ── Runner ──────────────────────────────────────────────────────

if __name__ == "__main__":
    print("=" * 68)
    print("ML-DSA (FIPS 204) Test Suite")
    print("=" * 68)
    t0 = time.time()

    loader = unittest.TestLoader()
    suite = loader.loadTestsFromModule(sys.modules[__name__])
    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    elapsed = time.time() - t0
    print(f"\nCompleted in {elapsed:.1f}s")
    sys.exit(0 if result.wasSuccessful() else 1)
