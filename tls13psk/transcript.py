"""
Handshake Transcript and the Partial ClientHello covered by PSK binders

RFC 8446 Section 4.2.11.2: the binder is an HMAC over

    Transcript-Hash(Truncate(ClientHello1))

where Truncate() removes the binders list, i.e. the hash input ends on the
last byte of PreSharedKeyExtension.identities. The handshake header still
carries the length of the full message, binders included.
"""

import logging
from typing import List, Optional

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes

from .constants import ExtensionType
from .errors import MalformedExtension, ProtocolSequenceViolation
from .extensions import OfferedPsks, encode_offered_psks
from .handshake import ClientHello, ClientHelloReader, serialize_client_hello

logger = logging.getLogger(__name__)


class TranscriptHash:
    """
    Running transcript of handshake messages.

    Raw messages are kept so the most recent one can be withdrawn and
    re-fed partially. digest() hashes with the algorithm given at
    construction, or the one set later through determine() once the
    cipher suite is known.
    """

    def __init__(self, algorithm: hashes.HashAlgorithm = None):
        self.algorithm = algorithm
        self._messages: List[bytes] = []

    def determine(self, algorithm: hashes.HashAlgorithm):
        self.algorithm = algorithm

    def feed(self, data: bytes, length: Optional[int] = None):
        """Append data[:length] (all of data when length is None) as one message."""
        if length is None:
            length = len(data)
        self._messages.append(bytes(data[:length]))

    def remove_last_message(self) -> bytes:
        if not self._messages:
            raise ProtocolSequenceViolation("No handshake message to remove from transcript")
        return self._messages.pop()

    def copy(self) -> "TranscriptHash":
        duplicate = TranscriptHash(self.algorithm)
        duplicate._messages = list(self._messages)
        return duplicate

    @property
    def messages(self) -> List[bytes]:
        return list(self._messages)

    def digest(self) -> bytes:
        algorithm = self.algorithm or hashes.SHA256()
        h = hashes.Hash(algorithm, backend=default_backend())
        for message in self._messages:
            h.update(message)
        return h.finalize()


def build_partial_client_hello(hello: ClientHello, offer: OfferedPsks) -> bytes:
    """
    Bytes of the ClientHello the binders authenticate (sender side).

    The PSK extension is placed last with the offer's binders; only their
    lengths matter, so placeholders of the final size are fine. The full
    message is serialized so the handshake header and every enclosing
    length field carry their final values, then the binders list
    (2-byte length + entries) is cut off the end.

    Args:
        hello: ClientHello fields; an existing pre_shared_key entry is replaced
        offer: Identities with binders of their final length

    Returns:
        bytes: Handshake message prefix ending after the identities list
    """
    full = serialize_client_hello(
        hello.with_extension(ExtensionType.PRE_SHARED_KEY, encode_offered_psks(offer))
    )
    return full[:len(full) - 2 - offer.binders_encoded_length()]


def partial_client_hello_length(message: bytes) -> int:
    """
    Offset where the binders list starts in a received ClientHello.

    Walks the header, fixed fields and extensions to the pre_shared_key
    extension, then steps over its identities list.

    Args:
        message: Complete ClientHello handshake message as received

    Returns:
        int: Length of the prefix the binder was computed over

    Raises:
        ProtocolSequenceViolation: No pre_shared_key, or it is not the last extension
        MalformedExtension: On any bounds violation
    """
    reader = ClientHelloReader(message)
    reader.pull_header()
    reader.pull_fixed_fields()

    extensions_len = reader.pull_uint16("extensions length")
    extensions_end = reader.offset + extensions_len
    if extensions_end != len(message):
        raise MalformedExtension("Invalid ClientHello: extensions length mismatch")

    while reader.offset < extensions_end:
        ext_type = reader.pull_uint16("extension type")
        ext_len = reader.pull_uint16("extension length")
        if ext_type != ExtensionType.PRE_SHARED_KEY:
            reader.pull(ext_len, "extension data")
            continue

        if reader.offset + ext_len != extensions_end:
            raise ProtocolSequenceViolation(
                "pre_shared_key is not the last extension in ClientHello")
        ids_len = reader.pull_uint16("identities length")
        reader.pull(ids_len, "identities")
        return reader.offset

    raise ProtocolSequenceViolation("ClientHello carries no pre_shared_key extension")


def binder_transcript(transcript: TranscriptHash) -> TranscriptHash:
    """
    Transcript the received binder was computed over (receiver side).

    The last message of the transcript must be the ClientHello. A
    duplicate is returned with that message replaced by its partial
    prefix; the transcript passed in is left untouched.
    """
    duplicate = transcript.copy()
    last_message = duplicate.remove_last_message()
    length = partial_client_hello_length(last_message)
    logger.debug("PSK binder covers %d of %d ClientHello bytes", length, len(last_message))
    duplicate.feed(last_message, length)
    return duplicate
