# Copyright (c) 2026 Signer — MIT License

"""ML-DSA (FIPS 204) — pure-Python module-lattice digital signatures.

Parameter sets:
    ML-DSA-44  NIST Level 2   pk 1,312 B   sk 2,560 B   sig 2,420 B
    ML-DSA-65  NIST Level 3   pk 1,952 B   sk 4,032 B   sig 3,309 B
    ML-DSA-87  NIST Level 5   pk 2,592 B   sk 4,896 B   sig 4,627 B

Byte-level API:
    ml_keygen(seed=None, params=ML_DSA_65) -> (pk_bytes, sk_bytes)
    ml_sign(sk_bytes, message)             -> sig_bytes   (deterministic)
    ml_verify(pk_bytes, message, sig)      -> bool

Malformed keys and signatures raise `DecodeError`; a well-formed
signature that fails verification returns False.
"""

from .errors import (
    MLDSAError, CodecError, DecodeError,
    InvalidBitWidthError, BitOverflowError, TruncatedInputError,
    InvalidLengthError, OutOfBoundsCoefficientError, MalformedHintError,
    UnknownParameterSetError, ConfigurationError, InternalError,
    SigningAttemptsExceededError,
    SelfTestError,
)
from .params import (
    ParameterSet, ML_DSA_44, ML_DSA_65, ML_DSA_87, PARAMETER_SETS,
    DEFAULT_MAX_SIGN_ATTEMPTS, max_sign_attempts_from_env,
    lookup, from_public_key_length, from_secret_key_length, from_signature_length,
)
from .dsa import (
    PublicKey, PrivateKey, Signature,
    keygen_internal, sign_internal, verify_internal,
    ml_keygen, ml_sign, ml_verify, ml_pk_from_sk,
)
from .selftest import self_test, EDGE_MESSAGES

__all__ = [
    # Errors
    "MLDSAError", "CodecError", "DecodeError",
    "InvalidBitWidthError", "BitOverflowError", "TruncatedInputError",
    "InvalidLengthError", "OutOfBoundsCoefficientError", "MalformedHintError",
    "UnknownParameterSetError", "ConfigurationError", "InternalError",
    "SigningAttemptsExceededError",
    "SelfTestError",
    # Parameter sets
    "ParameterSet", "ML_DSA_44", "ML_DSA_65", "ML_DSA_87", "PARAMETER_SETS",
    "DEFAULT_MAX_SIGN_ATTEMPTS", "max_sign_attempts_from_env",
    "lookup", "from_public_key_length", "from_secret_key_length",
    "from_signature_length",
    # Key / sign / verify
    "PublicKey", "PrivateKey", "Signature",
    "keygen_internal", "sign_internal", "verify_internal",
    "ml_keygen", "ml_sign", "ml_verify", "ml_pk_from_sk",
    # Self test
    "self_test", "EDGE_MESSAGES",
]
