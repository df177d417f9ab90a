"""Builders shared by the pre_shared_key tests."""

import struct

from tls13psk import ClientHello, ResumableSession
from tls13psk.constants import ExtensionType, TLS_AES_128_GCM_SHA256
from tls13psk.extensions import OfferedPsks, PskIdentity

NOW = 1_700_000_000.0
TEST_PSK = bytes([0xAA] * 32)
TICKET = b"ticket-0001"


def fixed_clock():
    return NOW


def supported_versions() -> bytes:
    return struct.pack("B", 2) + struct.pack(">H", 0x0304)


def make_hello(**kwargs) -> ClientHello:
    """A ClientHello with a couple of ordinary extensions and a fixed random."""
    kwargs.setdefault("random", bytes(range(32)))
    kwargs.setdefault("extensions", [
        (ExtensionType.SUPPORTED_VERSIONS, supported_versions()),
        (ExtensionType.SERVER_NAME, b"\x00\x0e\x00\x00\x0bexample.com"),
    ])
    return ClientHello(**kwargs)


def make_offer(*identities: bytes, binder_length: int = 32) -> OfferedPsks:
    return OfferedPsks(
        identities=[PskIdentity(i, 1000 + n) for n, i in enumerate(identities)],
        binders=[bytes([n]) * binder_length for n in range(len(identities))],
    )


def make_session(ticket: bytes = TICKET, psk: bytes = TEST_PSK,
                 cipher_suite: int = TLS_AES_128_GCM_SHA256, **kwargs) -> ResumableSession:
    kwargs.setdefault("creation_time", NOW - 10)
    kwargs.setdefault("ticket_age_add", 0x01020304)
    kwargs.setdefault("server_name", "example.com")
    return ResumableSession(psk=psk, ticket=ticket, cipher_suite=cipher_suite, **kwargs)
