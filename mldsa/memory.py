# Copyright (c) 2026 Signer — MIT License

"""Secure memory utilities (libsodium via PyNaCl).

Signing copies secret key material into `bytearray`s so it can be locked
in RAM while in use and wiped afterwards. Immutable `bytes` objects are
left alone; only mutable buffers can be cleared.
"""

from nacl._sodium import ffi as _ffi, lib as _lib


def secure_zero(buf):
    """Securely wipe a mutable buffer (bytearray / memoryview)."""
    if not isinstance(buf, (bytearray, memoryview)):
        return
    n = len(buf)
    if n == 0:
        return
    _lib.sodium_memzero(_ffi.from_buffer(buf), n)


def mlock(buf):
    """Lock memory pages to prevent swapping to disk."""
    if isinstance(buf, (bytearray, memoryview)) and len(buf):
        _lib.sodium_mlock(_ffi.from_buffer(buf), len(buf))


def munlock(buf):
    """Unlock memory pages (also zeros the region)."""
    if isinstance(buf, (bytearray, memoryview)) and len(buf):
        _lib.sodium_munlock(_ffi.from_buffer(buf), len(buf))
