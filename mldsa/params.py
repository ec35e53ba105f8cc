# Copyright (c) 2026 Signer — MIT License

"""ML-DSA parameter sets (FIPS 204 Table 1) and runtime configuration.

Three immutable descriptors, one per NIST security category:

    ML-DSA-44  Category 2   pk 1,312   sk 2,560   sig 2,420
    ML-DSA-65  Category 3   pk 1,952   sk 4,032   sig 3,309
    ML-DSA-87  Category 5   pk 2,592   sk 4,896   sig 4,627

Encoded sizes are fixed per set, so a key or signature length alone
identifies its parameter set (`from_public_key_length` and friends).

Configuration:
    MLDSA_MAX_SIGN_ATTEMPTS  Upper bound on signing rejection-loop
                             iterations (default 1000). Read once at
                             import; per-call arguments override it.
                             A non-integer or a value below 1 raises
                             `ConfigurationError` at import.
"""

import os
from dataclasses import dataclass

from .errors import ConfigurationError, UnknownParameterSetError

# ── Ring constants (FIPS 204 Section 4) ────────────────────────────

Q = 8380417            # Prime modulus: 2^23 - 2^13 + 1
N = 256                # Polynomial degree
D = 13                 # Dropped bits from t
SEED_SIZE = 32         # xi, rho, K
RHO_PRIME_SIZE = 64    # rho' (secret expansion seed)
TR_SIZE = 64           # tr = H(pk)
MU_SIZE = 64           # mu = H(tr || M)
T1_BITS = (Q - 1).bit_length() - D   # = 10
T0_BITS = D                          # = 13

# ── Configuration ──────────────────────────────────────────────────

def max_sign_attempts_from_env(environ=os.environ):
    """Read MLDSA_MAX_SIGN_ATTEMPTS (default 1000); must be an integer >= 1."""
    raw = environ.get("MLDSA_MAX_SIGN_ATTEMPTS", "1000")
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(
            f"MLDSA_MAX_SIGN_ATTEMPTS must be an integer, got {raw!r}") from None
    if value < 1:
        raise ConfigurationError(f"MLDSA_MAX_SIGN_ATTEMPTS must be >= 1, got {value}")
    return value


DEFAULT_MAX_SIGN_ATTEMPTS = max_sign_attempts_from_env()


@dataclass(frozen=True)
class ParameterSet:
    """Constants for one ML-DSA security level."""
    name: str
    level: int      # NIST security category
    k: int          # Rows in matrix A
    l: int          # Columns in matrix A
    eta: int        # Secret coefficient bound
    tau: int        # Number of +/-1 in the challenge polynomial
    beta: int       # tau * eta
    gamma1: int     # Mask coefficient range
    gamma2: int     # Low-order rounding range
    omega: int      # Max number of 1s in the hint
    lambda_: int    # Collision strength (bits)

    @property
    def eta_bits(self) -> int:
        return (2 * self.eta).bit_length()

    @property
    def gamma1_bits(self) -> int:
        return 1 + (self.gamma1 - 1).bit_length()

    @property
    def w1_bits(self) -> int:
        return ((Q - 1) // (2 * self.gamma2) - 1).bit_length()

    @property
    def c_tilde_size(self) -> int:
        return self.lambda_ // 4

    @property
    def pk_size(self) -> int:
        return SEED_SIZE + self.k * N * T1_BITS // 8

    @property
    def sk_size(self) -> int:
        return (2 * SEED_SIZE + TR_SIZE
                + (self.l + self.k) * N * self.eta_bits // 8
                + self.k * N * T0_BITS // 8)

    @property
    def sig_size(self) -> int:
        return (self.c_tilde_size
                + self.l * N * self.gamma1_bits // 8
                + self.omega + self.k)


ML_DSA_44 = ParameterSet(
    name="ML-DSA-44", level=2, k=4, l=4, eta=2, tau=39, beta=78,
    gamma1=1 << 17, gamma2=(Q - 1) // 88, omega=80, lambda_=128,
)

ML_DSA_65 = ParameterSet(
    name="ML-DSA-65", level=3, k=6, l=5, eta=4, tau=49, beta=196,
    gamma1=1 << 19, gamma2=(Q - 1) // 32, omega=55, lambda_=192,
)

ML_DSA_87 = ParameterSet(
    name="ML-DSA-87", level=5, k=8, l=7, eta=2, tau=60, beta=120,
    gamma1=1 << 19, gamma2=(Q - 1) // 32, omega=75, lambda_=256,
)

PARAMETER_SETS = (ML_DSA_44, ML_DSA_65, ML_DSA_87)

_BY_KEY = {}
for _p in PARAMETER_SETS:
    _BY_KEY[_p.level] = _p
    _BY_KEY[_p.name] = _p
    _BY_KEY[int(_p.name.rsplit("-", 1)[1])] = _p    # 44 / 65 / 87
del _p


def lookup(level):
    """Return the parameter set for a level (2/3/5), a size tag
    (44/65/87) or a name ("ML-DSA-65")."""
    try:
        return _BY_KEY[level]
    except (KeyError, TypeError):
        raise UnknownParameterSetError(level) from None


def _by_size(attr, n):
    for p in PARAMETER_SETS:
        if getattr(p, attr) == n:
            return p
    raise UnknownParameterSetError(f"{attr}={n}")


def from_public_key_length(n):
    """Infer the parameter set from an encoded public key length."""
    return _by_size("pk_size", n)


def from_secret_key_length(n):
    """Infer the parameter set from an encoded secret key length."""
    return _by_size("sk_size", n)


def from_signature_length(n):
    """Infer the parameter set from an encoded signature length."""
    return _by_size("sig_size", n)
