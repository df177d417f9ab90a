"""
PSK Binder Computation and Verification (RFC 8446 Section 4.2.11.2)

binder = HMAC(finished_key, Transcript-Hash(Truncate(ClientHello)))
"""

from typing import Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes, hmac

from .errors import BinderMismatch
from .extensions import OfferedPsks
from .handshake import ClientHello
from .key_schedule import binder_hash_algorithm, derive_binder_keys
from .transcript import TranscriptHash, build_partial_client_hello


def _binder_hmac(finished_key: bytes, algorithm: hashes.HashAlgorithm,
                 transcript_digest: bytes) -> hmac.HMAC:
    h = hmac.HMAC(finished_key, algorithm, backend=default_backend())
    h.update(transcript_digest)
    return h


def compute_binder(finished_key: bytes, transcript_digest: bytes,
                   algorithm: hashes.HashAlgorithm) -> bytes:
    """
    Compute a binder value.

    Args:
        finished_key: Derived from the binder key
        transcript_digest: Hash of the partial ClientHello (and anything before it)
        algorithm: The session's hash algorithm

    Returns:
        bytes: Binder, digest length
    """
    return _binder_hmac(finished_key, algorithm, transcript_digest).finalize()


def verify_binder(finished_key: bytes, transcript_digest: bytes, binder: bytes,
                  algorithm: hashes.HashAlgorithm) -> bool:
    """
    Check a received binder in constant time.

    A binder of the wrong length fails the same way as a wrong value.
    """
    try:
        _binder_hmac(finished_key, algorithm, transcript_digest).verify(binder)
    except InvalidSignature:
        return False
    return True


def check_binder(psk: bytes, cipher_suite: int, transcript: TranscriptHash,
                 binder: bytes):
    """
    Verify a received binder against the binder transcript.

    Args:
        psk: Pre-shared key of the session being resumed
        cipher_suite: The session's cipher suite
        transcript: Output of binder_transcript()
        binder: Binder received for the selected identity

    Raises:
        BinderMismatch: The binder does not authenticate the ClientHello
        KeyDerivationFailure: The key schedule failed
    """
    algorithm = binder_hash_algorithm(cipher_suite)
    keys = derive_binder_keys(psk, algorithm)
    transcript.determine(algorithm)
    if not verify_binder(keys.finished_key, transcript.digest(), binder, algorithm):
        raise BinderMismatch("Incorrect PSK binder value")


def compute_client_hello_binder(psk: bytes, cipher_suite: int, hello: ClientHello,
                                offer: OfferedPsks,
                                transcript: Optional[TranscriptHash] = None) -> bytes:
    """
    Compute the binder for one identity of an outgoing ClientHello.

    Args:
        psk: Pre-shared key of the identity
        cipher_suite: Cipher suite the PSK is bound to
        hello: ClientHello with every extension except pre_shared_key
        offer: The offer, binders of their final length (placeholders)
        transcript: Messages preceding this ClientHello; copied, not mutated

    Returns:
        bytes: The binder value to place in the offer
    """
    algorithm = binder_hash_algorithm(cipher_suite)
    keys = derive_binder_keys(psk, algorithm)

    binder_hash = transcript.copy() if transcript is not None else TranscriptHash()
    binder_hash.determine(algorithm)
    binder_hash.feed(build_partial_client_hello(hello, offer))

    return compute_binder(keys.finished_key, binder_hash.digest(), algorithm)
