# Copyright (c) 2026 Signer — MIT License

"""Exception taxonomy for ML-DSA.

Four families, kept apart so callers never confuse "could not parse"
with "signature rejected":

    CodecError      malformed bytes or values that cannot be packed.
                    Subclasses ValueError.
    UnknownParameterSetError
                    no parameter set matches a level, name or length.
                    Subclasses LookupError.
    ConfigurationError
                    an environment setting is invalid. Subclasses
                    ValueError.
    InternalError   an invariant of the algorithm failed (e.g. the
                    signing loop exhausted its attempt cap). Subclasses
                    RuntimeError.

A cryptographically invalid but well-formed signature is not an error:
verification returns False.
"""


class MLDSAError(Exception):
    """Base class for every error raised by this package."""


# ── Codec errors ───────────────────────────────────────────────────

class CodecError(MLDSAError, ValueError):
    """Bit packing or unpacking failed."""


class InvalidBitWidthError(CodecError):
    def __init__(self, width):
        self.width = width
        super().__init__(f"bit width must be in 1..32, got {width}")


class BitOverflowError(CodecError):
    def __init__(self, value, width):
        self.value = value
        self.width = width
        super().__init__(f"value {value} does not fit in {width} bits")


class DecodeError(CodecError):
    """Encoded key or signature bytes are structurally invalid."""


class TruncatedInputError(DecodeError):
    def __init__(self, needed, got):
        self.needed = needed
        self.got = got
        super().__init__(f"need {needed} bytes, got {got}")


class InvalidLengthError(DecodeError):
    def __init__(self, what, expected, got):
        self.what = what
        self.expected = expected
        self.got = got
        super().__init__(f"{what} must be {expected} bytes, got {got}")


class OutOfBoundsCoefficientError(DecodeError):
    def __init__(self, what, value, bound):
        self.what = what
        self.value = value
        self.bound = bound
        super().__init__(f"{what} coefficient {value} outside bound {bound}")


class MalformedHintError(DecodeError):
    """Hint section has bad counts, unordered indices or dirty padding."""


# ── Parameter set lookup ───────────────────────────────────────────

class UnknownParameterSetError(MLDSAError, LookupError):
    def __init__(self, key):
        self.key = key
        super().__init__(f"no ML-DSA parameter set for {key!r}")


# ── Configuration ──────────────────────────────────────────────────

class ConfigurationError(MLDSAError, ValueError):
    """An environment setting holds an invalid value."""


# ── Internal failures ──────────────────────────────────────────────

class InternalError(MLDSAError, RuntimeError):
    """An algorithm invariant failed; the operation was aborted."""


class SigningAttemptsExceededError(InternalError):
    def __init__(self, attempts, reason="attempt cap"):
        self.attempts = attempts
        super().__init__(
            f"ML-DSA signing aborted after {attempts} rejection attempts ({reason})"
        )


class SelfTestError(InternalError):
    """The power-on self test produced an unexpected result."""
