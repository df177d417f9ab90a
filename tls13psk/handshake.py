"""
TLS 1.3 ClientHello Building and Parsing (RFC 8446 Section 4.1.2)

struct {
    ProtocolVersion legacy_version = 0x0303;    /* TLS v1.2 */
    Random random;
    opaque legacy_session_id<0..32>;
    CipherSuite cipher_suites<2..2^16-2>;
    opaque legacy_compression_methods<1..2^8-1>;
    Extension extensions<8..2^16-1>;
} ClientHello;
"""

import os
import struct
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from .constants import (
    HANDSHAKE_HEADER_LENGTH, HANDSHAKE_TYPE_NAMES, TLS_AES_128_GCM_SHA256, TLS_VERSION_1_2,
    HandshakeType
)
from .errors import MalformedExtension
from .extensions import build_extension, parse_extensions


@dataclass
class ClientHello:
    random: bytes = field(default_factory=lambda: os.urandom(32))
    legacy_version: int = TLS_VERSION_1_2
    legacy_session_id: bytes = b""
    cipher_suites: List[int] = field(default_factory=lambda: [TLS_AES_128_GCM_SHA256])
    compression_methods: bytes = b"\x00"
    extensions: List[Tuple[int, bytes]] = field(default_factory=list)

    def get_extension(self, ext_type: int) -> Optional[bytes]:
        for t, data in self.extensions:
            if t == ext_type:
                return data
        return None

    def with_extension(self, ext_type: int, data: bytes) -> "ClientHello":
        """Copy with ext_type appended last, replacing an earlier copy of it."""
        extensions = [(t, d) for t, d in self.extensions if t != ext_type]
        extensions.append((ext_type, data))
        return replace(self, extensions=extensions)


def wrap_handshake(msg_type: int, body: bytes) -> bytes:
    """Prefix a handshake body with type (1 byte) and 3-byte length."""
    return struct.pack("B", msg_type) + struct.pack(">I", len(body))[1:] + body


def serialize_client_hello_body(hello: ClientHello) -> bytes:
    """Serialize the ClientHello body (no handshake header)."""
    extensions = b"".join(build_extension(t, d) for t, d in hello.extensions)

    body = b""
    body += struct.pack(">H", hello.legacy_version)
    body += hello.random
    body += struct.pack("B", len(hello.legacy_session_id)) + hello.legacy_session_id

    cipher_suites = b"".join(struct.pack(">H", s) for s in hello.cipher_suites)
    body += struct.pack(">H", len(cipher_suites)) + cipher_suites

    body += struct.pack("B", len(hello.compression_methods)) + hello.compression_methods

    body += struct.pack(">H", len(extensions)) + extensions
    return body


def serialize_client_hello(hello: ClientHello) -> bytes:
    """Serialize a complete ClientHello handshake message."""
    return wrap_handshake(HandshakeType.CLIENT_HELLO, serialize_client_hello_body(hello))


class ClientHelloReader:
    """
    Walks a raw ClientHello handshake message field by field.

    Offsets are absolute within the message, header included, so that a
    reader stopped at any field boundary gives the length of the prefix
    up to that point.
    """

    def __init__(self, message: bytes):
        self.message = message
        self.offset = 0

    def pull(self, length: int, what: str) -> bytes:
        if self.offset + length > len(self.message):
            raise MalformedExtension(
                f"Invalid ClientHello: insufficient {what} "
                f"(need {length}, have {len(self.message) - self.offset})")
        data = self.message[self.offset:self.offset+length]
        self.offset += length
        return data

    def pull_uint8(self, what: str) -> int:
        return self.pull(1, what)[0]

    def pull_uint16(self, what: str) -> int:
        return struct.unpack(">H", self.pull(2, what))[0]

    def pull_opaque8(self, what: str) -> bytes:
        return self.pull(self.pull_uint8(what), what)

    def pull_opaque16(self, what: str) -> bytes:
        return self.pull(self.pull_uint16(what), what)

    def pull_header(self) -> int:
        msg_type = self.pull_uint8("handshake type")
        if msg_type != HandshakeType.CLIENT_HELLO:
            raise MalformedExtension(
                "Expected ClientHello, got %s" % HANDSHAKE_TYPE_NAMES.get(msg_type, msg_type))
        length = struct.unpack(">I", b"\x00" + self.pull(3, "handshake length"))[0]
        if HANDSHAKE_HEADER_LENGTH + length != len(self.message):
            raise MalformedExtension(
                f"Invalid ClientHello: declared length {length} does not match "
                f"{len(self.message) - HANDSHAKE_HEADER_LENGTH} body bytes")
        return length

    def pull_fixed_fields(self) -> dict:
        """Everything between the header and the extensions block."""
        legacy_version = self.pull_uint16("legacy_version")
        random = self.pull(32, "random")
        session_id = self.pull_opaque8("legacy_session_id")
        suites = self.pull_opaque16("cipher_suites")
        if len(suites) % 2:
            raise MalformedExtension("Invalid ClientHello: odd cipher_suites length")
        compression_methods = self.pull_opaque8("legacy_compression_methods")
        return {
            "legacy_version": legacy_version,
            "random": random,
            "legacy_session_id": session_id,
            "cipher_suites": [s for (s,) in struct.iter_unpack(">H", suites)],
            "compression_methods": compression_methods,
        }


def parse_client_hello(message: bytes) -> ClientHello:
    """
    Parse a complete ClientHello handshake message.

    Args:
        message: Handshake message including its 4-byte header

    Returns:
        ClientHello: Parsed fields with extensions in wire order

    Raises:
        MalformedExtension: On any bounds violation
    """
    reader = ClientHelloReader(message)
    reader.pull_header()
    fields = reader.pull_fixed_fields()
    extensions = parse_extensions(reader.pull_opaque16("extensions"))
    if reader.offset != len(message):
        raise MalformedExtension("Invalid ClientHello: trailing data after extensions")
    return ClientHello(extensions=extensions, **fields)
