# Copyright (c) 2026 Signer — MIT License

"""Power-on self test and edge-case messages.

`self_test()` runs a full keygen / sign / verify cycle from a fixed
all-zero seed and checks sizes, acceptance of the genuine message and
rejection of a different one. It raises `SelfTestError` on any deviation.
"""

import structlog

from .dsa import ml_keygen, ml_sign, ml_verify
from .errors import SelfTestError
from .params import ML_DSA_44

logger = structlog.get_logger()

SELF_TEST_SEED = bytes(32)
SELF_TEST_MESSAGE = b"ml-dsa self-test message"
SELF_TEST_TAMPERED = b"tampered"

# Messages used by the sign/verify sweeps: empty input, long zero runs,
# saturated bytes and block-boundary lengths for the SHAKE-256 absorb.
EDGE_MESSAGES = (
    b"",
    bytes(512),
    bytes([0x00, 0x01, 0x02, 0x03, 0x04]),
    b"\xff" * 128,
    b"The quick brown fox jumps over the lazy dog.",
    b"\x80" + bytes(64),
    b"\xaa" * 64 + b"\x55" * 64,
)


def self_test(params=ML_DSA_44):
    """Run the known-seed keygen / sign / verify cycle for `params`."""
    pk, sk = ml_keygen(SELF_TEST_SEED, params)
    if len(pk) != params.pk_size or len(sk) != params.sk_size:
        raise SelfTestError(f"{params.name}: unexpected key sizes {len(pk)}/{len(sk)}")

    sig = ml_sign(sk, SELF_TEST_MESSAGE)
    if len(sig) != params.sig_size:
        raise SelfTestError(f"{params.name}: unexpected signature size {len(sig)}")
    if not ml_verify(pk, SELF_TEST_MESSAGE, sig):
        raise SelfTestError(f"{params.name}: genuine signature rejected")
    if ml_verify(pk, SELF_TEST_TAMPERED, sig):
        raise SelfTestError(f"{params.name}: signature accepted for tampered message")

    logger.info("mldsa_self_test_passed", parameter_set=params.name)
