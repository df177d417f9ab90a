"""
HKDF Functions for the TLS 1.3 Key Schedule (RFC 5869, RFC 8446)
"""

import struct
from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.kdf.hkdf import HKDFExpand
from cryptography.hazmat.backends import default_backend

from ..constants import (
    TLS_AES_128_GCM_SHA256, TLS_AES_256_GCM_SHA384, TLS_CHACHA20_POLY1305_SHA256
)


CIPHER_SUITE_HASHES = {
    TLS_AES_128_GCM_SHA256: hashes.SHA256,
    TLS_AES_256_GCM_SHA384: hashes.SHA384,
    TLS_CHACHA20_POLY1305_SHA256: hashes.SHA256,
}


def cipher_suite_hash(cipher_suite: int) -> hashes.HashAlgorithm:
    """
    Get the hash algorithm bound to a TLS 1.3 cipher suite.

    Raises:
        KeyError: If the cipher suite is not a TLS 1.3 suite we know
    """
    return CIPHER_SUITE_HASHES[cipher_suite]()


def hash_empty(algorithm: hashes.HashAlgorithm) -> bytes:
    """Transcript-Hash("") for the given algorithm."""
    digest = hashes.Hash(algorithm, backend=default_backend())
    return digest.finalize()


def hkdf_extract(salt: bytes, ikm: bytes,
                 algorithm: hashes.HashAlgorithm = None) -> bytes:
    """
    HKDF-Extract.

    Args:
        salt: Salt value (zero-filled buffer of digest length for the early secret)
        ikm: Input keying material
        algorithm: Hash algorithm (default: SHA-256)

    Returns:
        bytes: Pseudorandom key (digest length)
    """
    if algorithm is None:
        algorithm = hashes.SHA256()
    h = hmac.HMAC(salt, algorithm, backend=default_backend())
    h.update(ikm)
    return h.finalize()


def hkdf_expand_label(secret: bytes, label: bytes, context: bytes, length: int,
                      algorithm: hashes.HashAlgorithm = None) -> bytes:
    """
    HKDF-Expand-Label as defined in TLS 1.3 (RFC 8446 Section 7.1).

    HkdfLabel structure:
        uint16 length
        opaque label<7..255> = "tls13 " + Label
        opaque context<0..255>

    Args:
        secret: The secret to expand
        label: The label (without "tls13 " prefix)
        context: Context (usually transcript hash or empty)
        length: Desired output length
        algorithm: Hash algorithm (default: SHA-256)

    Returns:
        bytes: Derived key material
    """
    if algorithm is None:
        algorithm = hashes.SHA256()

    # Build HkdfLabel structure
    hkdf_label = struct.pack(">H", length)  # length (2 bytes)
    full_label = b"tls13 " + label
    hkdf_label += struct.pack("B", len(full_label)) + full_label  # label
    hkdf_label += struct.pack("B", len(context)) + context  # context

    hkdf = HKDFExpand(
        algorithm=algorithm,
        length=length,
        info=hkdf_label,
        backend=default_backend()
    )
    return hkdf.derive(secret)
