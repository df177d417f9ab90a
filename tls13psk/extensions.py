"""
TLS 1.3 pre_shared_key Extension Encoding and Parsing (RFC 8446 Section 4.2.11)
"""

import struct
from dataclasses import dataclass
from typing import List, Tuple

from .constants import (
    EXTENSION_NAMES, MAX_BINDER_LENGTH, MIN_BINDER_LENGTH, MIN_BINDERS_LENGTH,
    MIN_BINDERS_SECTION_LENGTH, MIN_IDENTITIES_LENGTH, MIN_OFFERED_PSKS_LENGTH,
    PskKeyExchangeMode
)
from .errors import InternalError, MalformedExtension


@dataclass(frozen=True)
class PskIdentity:
    """
    struct {
        opaque identity<1..2^16-1>;
        uint32 obfuscated_ticket_age;
    } PskIdentity;
    """
    identity: bytes
    obfuscated_ticket_age: int

    def encoded_length(self) -> int:
        return 2 + len(self.identity) + 4

    def __str__(self):
        return "{%s,%d}" % (self.identity.hex(), self.obfuscated_ticket_age)


@dataclass(frozen=True)
class OfferedPsks:
    """
    ClientHello form of the extension.

    struct {
        PskIdentity identities<7..2^16-1>;
        PskBinderEntry binders<33..2^16-1>;
    } OfferedPsks;

    identities[i] is bound by binders[i].
    """
    identities: List[PskIdentity]
    binders: List[bytes]

    def identities_encoded_length(self) -> int:
        return sum(identity.encoded_length() for identity in self.identities)

    def binders_encoded_length(self) -> int:
        return sum(1 + len(binder) for binder in self.binders)

    def with_binders(self, binders: List[bytes]) -> "OfferedPsks":
        return OfferedPsks(identities=list(self.identities), binders=list(binders))

    def __str__(self):
        identities = "\n".join("    " + str(i) for i in self.identities)
        binders = "\n".join("    {%s}" % b.hex() for b in self.binders)
        return ('"PreSharedKey": {\n'
                '  "identities": \n%s\n'
                '  "binders": \n%s\n'
                '}' % (identities, binders))


@dataclass(frozen=True)
class SelectedPsk:
    """ServerHello form of the extension: uint16 selected_identity."""
    selected_identity: int

    def __str__(self):
        return '"PreSharedKey": {"selected_identity": 0x%04x}' % self.selected_identity


def _pull(data: bytes, offset: int, length: int, what: str) -> Tuple[bytes, int]:
    if offset + length > len(data):
        raise MalformedExtension(
            "Invalid pre_shared_key extension: insufficient %s "
            "(need %d, have %d)" % (what, length, len(data) - offset))
    return data[offset:offset+length], offset + length


def _pull_uint8(data: bytes, offset: int, what: str) -> Tuple[int, int]:
    value, offset = _pull(data, offset, 1, what)
    return value[0], offset


def _pull_uint16(data: bytes, offset: int, what: str) -> Tuple[int, int]:
    value, offset = _pull(data, offset, 2, what)
    return struct.unpack(">H", value)[0], offset


def _pull_uint32(data: bytes, offset: int, what: str) -> Tuple[int, int]:
    value, offset = _pull(data, offset, 4, what)
    return struct.unpack(">I", value)[0], offset


def build_extension(ext_type: int, data: bytes) -> bytes:
    """
    Build a TLS extension.

    Args:
        ext_type: Extension type
        data: Extension data

    Returns:
        bytes: Complete extension
    """
    return struct.pack(">HH", ext_type, len(data)) + data


def parse_extensions(data: bytes) -> List[Tuple[int, bytes]]:
    """
    Split an extensions block into (type, body) pairs, keeping wire order.

    Raises:
        MalformedExtension: On overrun, trailing bytes or a repeated type
    """
    extensions = []
    seen = set()
    offset = 0

    while offset < len(data):
        ext_type, offset = _pull_uint16(data, offset, "extension type")
        ext_len, offset = _pull_uint16(data, offset, "extension length")
        ext_data, offset = _pull(data, offset, ext_len,
                                 EXTENSION_NAMES.get(ext_type, f"extension 0x{ext_type:04x}"))
        if ext_type in seen:
            raise MalformedExtension(f"Duplicate extension 0x{ext_type:04x}")
        seen.add(ext_type)
        extensions.append((ext_type, ext_data))

    return extensions


def encode_offered_psks(offer: OfferedPsks) -> bytes:
    """
    Encode the ClientHello pre_shared_key extension body.

    Args:
        offer: Identities and their binders

    Returns:
        bytes: identities<..> followed by binders<..>

    Raises:
        InternalError: A field is outside its wire range, so the offer
            could not be decoded again by the peer
    """
    if not offer.identities or not offer.binders:
        raise InternalError("Cannot encode pre_shared_key without identities and binders")
    for identity in offer.identities:
        if not 1 <= len(identity.identity) <= 0xFFFF:
            raise InternalError(
                "Cannot encode PSK identity of length %d" % len(identity.identity))
        if not 0 <= identity.obfuscated_ticket_age <= 0xFFFFFFFF:
            raise InternalError(
                "Cannot encode obfuscated ticket age %d" % identity.obfuscated_ticket_age)
    for binder in offer.binders:
        if not MIN_BINDER_LENGTH <= len(binder) <= MAX_BINDER_LENGTH:
            raise InternalError("Cannot encode PSK binder of length %d" % len(binder))
    if offer.identities_encoded_length() > 0xFFFF or offer.binders_encoded_length() > 0xFFFF:
        raise InternalError("pre_shared_key identities or binders list too long")

    data = struct.pack(">H", offer.identities_encoded_length())
    for identity in offer.identities:
        data += struct.pack(">H", len(identity.identity)) + identity.identity
        data += struct.pack(">I", identity.obfuscated_ticket_age)

    data += struct.pack(">H", offer.binders_encoded_length())
    for binder in offer.binders:
        data += struct.pack("B", len(binder)) + binder

    return data


def decode_offered_psks(data: bytes) -> OfferedPsks:
    """
    Decode the ClientHello pre_shared_key extension body.

    Args:
        data: Extension body, exactly as long as the extension's declared length

    Returns:
        OfferedPsks: Parsed identities and binders

    Raises:
        MalformedExtension: On any length or bounds violation
    """
    if len(data) < MIN_OFFERED_PSKS_LENGTH:
        raise MalformedExtension(
            "Invalid pre_shared_key extension: insufficient data "
            "(length=%d)" % len(data))

    offset = 0
    ids_len, offset = _pull_uint16(data, offset, "identities length")
    if ids_len < MIN_IDENTITIES_LENGTH:
        raise MalformedExtension(
            "Invalid pre_shared_key extension: insufficient identities "
            "(length=%d)" % ids_len)

    identities = []
    ids_end = offset + ids_len
    if ids_end > len(data):
        raise MalformedExtension(
            "Invalid pre_shared_key extension: identities overrun "
            "(length=%d)" % ids_len)
    while offset < ids_end:
        id_len, offset = _pull_uint16(data[:ids_end], offset, "identity length")
        if id_len < 1:
            raise MalformedExtension(
                "Invalid pre_shared_key extension: insufficient identity "
                "(length=%d)" % id_len)
        identity, offset = _pull(data[:ids_end], offset, id_len, "identity")
        age, offset = _pull_uint32(data[:ids_end], offset, "obfuscated ticket age")
        identities.append(PskIdentity(identity, age))

    if len(data) - offset < MIN_BINDERS_SECTION_LENGTH:
        raise MalformedExtension(
            "Invalid pre_shared_key extension: insufficient binders data "
            "(length=%d)" % (len(data) - offset))

    binders_len, offset = _pull_uint16(data, offset, "binders length")
    if binders_len < MIN_BINDERS_LENGTH:
        raise MalformedExtension(
            "Invalid pre_shared_key extension: insufficient binders "
            "(length=%d)" % binders_len)

    binders = []
    binders_end = offset + binders_len
    if binders_end != len(data):
        raise MalformedExtension(
            "Invalid pre_shared_key extension: binders length %d does not "
            "match remaining %d bytes" % (binders_len, len(data) - offset))
    while offset < binders_end:
        binder_len, offset = _pull_uint8(data, offset, "binder length")
        if binder_len < MIN_BINDER_LENGTH:
            raise MalformedExtension(
                "Invalid pre_shared_key extension: insufficient binder entry "
                "(length=%d)" % binder_len)
        binder, offset = _pull(data, offset, binder_len, "binder")
        binders.append(binder)

    return OfferedPsks(identities=identities, binders=binders)


def encode_selected_psk(selected: SelectedPsk) -> bytes:
    """Encode the ServerHello pre_shared_key extension body."""
    if not 0 <= selected.selected_identity <= 0xFFFF:
        raise InternalError(
            "Cannot encode selected identity %d" % selected.selected_identity)
    return struct.pack(">H", selected.selected_identity)


def decode_selected_psk(data: bytes) -> SelectedPsk:
    """
    Decode the ServerHello pre_shared_key extension body.

    Raises:
        MalformedExtension: If fewer than 2 bytes are present
    """
    if len(data) < 2:
        raise MalformedExtension(
            "Invalid pre_shared_key extension: insufficient selected_identity "
            "(length=%d)" % len(data))
    return SelectedPsk(struct.unpack(">H", data[:2])[0])


def encode_psk_key_exchange_modes(modes: List[int]) -> bytes:
    """
    Encode psk_key_exchange_modes (RFC 8446 Section 4.2.9).

    struct {
        PskKeyExchangeMode ke_modes<1..255>;
    } PskKeyExchangeModes;
    """
    data = bytes(modes)
    return struct.pack("B", len(data)) + data


def decode_psk_key_exchange_modes(data: bytes) -> List[int]:
    """
    Decode psk_key_exchange_modes; unknown modes are kept as plain ints.

    Raises:
        MalformedExtension: On an empty list or a length mismatch
    """
    modes_len, offset = _pull_uint8(data, 0, "psk_key_exchange_modes length")
    if modes_len < 1 or offset + modes_len != len(data):
        raise MalformedExtension(
            "Invalid psk_key_exchange_modes extension (length=%d)" % modes_len)

    modes = []
    for mode in data[offset:]:
        try:
            modes.append(PskKeyExchangeMode(mode))
        except ValueError:
            modes.append(mode)
    return modes
