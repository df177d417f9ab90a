"""
PSK Binder Key Derivation (RFC 8446 Section 7.1)

             0
             |
             v
   PSK ->  HKDF-Extract = Early Secret
             |
             +-----> Derive-Secret(., "res binder", "") = binder_key
                          |
                          +-> HKDF-Expand-Label(., "finished", "", Hash.length)
                                = finished_key
"""

from dataclasses import dataclass

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes

from .constants import LABEL_FINISHED, LABEL_RES_BINDER
from .crypto.hkdf import cipher_suite_hash, hash_empty, hkdf_expand_label, hkdf_extract
from .errors import KeyDerivationFailure


@dataclass(frozen=True)
class BinderKeys:
    """Secrets scoped to one binder computation. Never persisted."""
    binder_key: bytes
    finished_key: bytes


def binder_hash_algorithm(cipher_suite: int) -> hashes.HashAlgorithm:
    """
    Hash algorithm for a session's cipher suite.

    Raises:
        KeyDerivationFailure: If the suite has no TLS 1.3 hash
    """
    try:
        return cipher_suite_hash(cipher_suite)
    except KeyError:
        raise KeyDerivationFailure(
            f"No hash algorithm for cipher suite 0x{cipher_suite:04x}") from None


def derive_binder_key(psk: bytes, algorithm: hashes.HashAlgorithm) -> bytes:
    """
    Derive the resumption binder key from a PSK.

    early_secret = HKDF-Extract(salt=zeros(Hash.length), IKM=PSK)
    binder_key = HKDF-Expand-Label(early_secret, "res binder", Hash(""), Hash.length)

    Note: Derive-Secret uses Transcript-Hash(Messages), so with no messages
    the context is the hash of the empty string, not an empty context.

    Raises:
        KeyDerivationFailure: If the underlying primitive fails
    """
    try:
        early_secret = hkdf_extract(bytes(algorithm.digest_size), psk, algorithm)
        return hkdf_expand_label(
            early_secret,
            LABEL_RES_BINDER,
            hash_empty(algorithm),
            algorithm.digest_size,
            algorithm,
        )
    except (TypeError, ValueError, UnsupportedAlgorithm) as exc:
        raise KeyDerivationFailure(f"Cannot derive binder key: {exc}") from exc


def derive_finished_key(binder_key: bytes, algorithm: hashes.HashAlgorithm) -> bytes:
    """
    finished_key = HKDF-Expand-Label(binder_key, "finished", "", Hash.length)

    Raises:
        KeyDerivationFailure: If the underlying primitive fails
    """
    try:
        return hkdf_expand_label(
            binder_key, LABEL_FINISHED, b"", algorithm.digest_size, algorithm
        )
    except (TypeError, ValueError, UnsupportedAlgorithm) as exc:
        raise KeyDerivationFailure(f"Cannot derive finished key: {exc}") from exc


def derive_binder_keys(psk: bytes, algorithm: hashes.HashAlgorithm) -> BinderKeys:
    """Run both steps; deterministic in (psk, algorithm)."""
    binder_key = derive_binder_key(psk, algorithm)
    return BinderKeys(
        binder_key=binder_key,
        finished_key=derive_finished_key(binder_key, algorithm),
    )
