"""Password hash verification for the external database provider.

Two families are supported:

- adaptive schemes (``bcrypt``, ``argon2i``, ``argon2id``) whose stored hash
  embeds its own salt and cost and whose libraries compare in constant time;
- plain digests (any fixed-length algorithm ``hashlib`` can build here, e.g.
  ``sha256`` or ``md5``), stored as lowercase hex and compared with
  :func:`hmac.compare_digest`.

The algorithm is resolved once into a verifier with :func:`resolve_verifier`
and then reused for every attempt.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from typing import Callable, Union

import bcrypt
from argon2.exceptions import VerificationError
from argon2.low_level import Type, verify_secret

from extdbauth.exceptions import UnsupportedAlgorithmError

# bcrypt only looks at the first 72 bytes of a password.
_BCRYPT_MAX_BYTES = 72

# Variable-length digests have no canonical hex form.
_VARIABLE_LENGTH_DIGESTS = frozenset({"shake_128", "shake_256"})


def _usable_digests() -> frozenset[str]:
    names = set()
    for name in hashlib.algorithms_available:
        name = name.lower()
        if name in _VARIABLE_LENGTH_DIGESTS:
            continue
        try:
            hashlib.new(name)
        except ValueError:
            # Listed by OpenSSL but disabled by its provider config (e.g. md4).
            continue
        names.add(name)
    return frozenset(names)


def _verify_bcrypt(plaintext: str, stored: str) -> bool:
    try:
        return bcrypt.checkpw(
            plaintext.encode("utf-8")[:_BCRYPT_MAX_BYTES], stored.encode("utf-8")
        )
    except ValueError:
        # Not a bcrypt hash
        return False


def _argon2_verifier(variant: Type) -> Callable[[str, str], bool]:
    def verify(plaintext: str, stored: str) -> bool:
        try:
            return verify_secret(stored.encode("utf-8"), plaintext.encode("utf-8"), variant)
        except VerificationError:
            # Mismatch, malformed hash, or a hash of the other argon2 variant.
            return False

    return verify


_ADAPTIVE_SCHEMES: dict[str, Callable[[str, str], bool]] = {
    "bcrypt": _verify_bcrypt,
    "argon2i": _argon2_verifier(Type.I),
    "argon2id": _argon2_verifier(Type.ID),
}

ADAPTIVE_SCHEMES = frozenset(_ADAPTIVE_SCHEMES)
DIGEST_ALGORITHMS = _usable_digests()
SUPPORTED_ALGORITHMS = DIGEST_ALGORITHMS | ADAPTIVE_SCHEMES


def digest(algorithm: str, plaintext: str) -> str:
    """Return the lowercase hex digest of ``plaintext`` under ``algorithm``."""
    if algorithm not in DIGEST_ALGORITHMS:
        raise UnsupportedAlgorithmError(algorithm)
    return hashlib.new(algorithm, plaintext.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class DigestVerifier:
    """Hash the candidate and compare hex digests in constant time."""

    algorithm: str

    def verify(self, plaintext: str, stored: str) -> bool:
        computed = digest(self.algorithm, plaintext)
        return hmac.compare_digest(stored.encode("utf-8"), computed.encode("utf-8"))


@dataclass(frozen=True)
class AdaptiveVerifier:
    """Delegate to the scheme's own verification routine."""

    algorithm: str

    def verify(self, plaintext: str, stored: str) -> bool:
        return _ADAPTIVE_SCHEMES[self.algorithm](plaintext, stored)


Verifier = Union[DigestVerifier, AdaptiveVerifier]


def resolve_verifier(algorithm: str) -> Verifier:
    """Map an algorithm name to its verifier, rejecting unsupported names."""
    if algorithm in ADAPTIVE_SCHEMES:
        return AdaptiveVerifier(algorithm)
    if algorithm in DIGEST_ALGORITHMS:
        return DigestVerifier(algorithm)
    raise UnsupportedAlgorithmError(algorithm)


def verify(algorithm: str, plaintext: str, stored: str) -> bool:
    """Return True if ``plaintext`` matches the ``stored`` hash under ``algorithm``."""
    return resolve_verifier(algorithm).verify(plaintext, stored)
