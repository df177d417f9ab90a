"""Tests for the pre_shared_key wire codec."""

import struct

import pytest

from tls13psk.constants import ExtensionType, PskKeyExchangeMode
from tls13psk.errors import AlertDescription, InternalError, MalformedExtension
from tls13psk.extensions import (
    OfferedPsks, PskIdentity, SelectedPsk, build_extension, decode_offered_psks,
    decode_psk_key_exchange_modes, decode_selected_psk, encode_offered_psks,
    encode_psk_key_exchange_modes, encode_selected_psk, parse_extensions
)

from .helpers import make_offer

# identities<7>: one 1-byte identity, age 0
MINIMAL_IDENTITIES = b"\x00\x07" + b"\x00\x01" + b"A" + b"\x00\x00\x00\x00"
# binders<33>: one 32-byte binder
MINIMAL_BINDERS = b"\x00\x21" + b"\x20" + b"\xbb" * 32


class TestOfferedPsksEncoding:

    def test_minimal_offer_layout(self) -> None:
        offer = OfferedPsks([PskIdentity(b"A", 0)], [b"\xbb" * 32])
        data = encode_offered_psks(offer)
        assert data == MINIMAL_IDENTITIES + MINIMAL_BINDERS
        assert len(data) == 44

    def test_big_endian_fields(self) -> None:
        offer = OfferedPsks([PskIdentity(b"\x01" * 300, 0x11223344)], [b"\x02" * 48])
        data = encode_offered_psks(offer)
        assert data[0:2] == struct.pack(">H", 2 + 300 + 4)
        assert data[2:4] == b"\x01\x2c"
        assert data[304:308] == b"\x11\x22\x33\x44"
        assert data[308:310] == struct.pack(">H", 49)
        assert data[310] == 48

    def test_round_trip_keeps_order(self) -> None:
        offer = OfferedPsks(
            identities=[PskIdentity(b"first", 0), PskIdentity(b"second", 0xFFFFFFFF),
                        PskIdentity(b"t" * 1000, 42)],
            binders=[b"\x01" * 32, b"\x02" * 48, b"\x03" * 64],
        )
        assert decode_offered_psks(encode_offered_psks(offer)) == offer

    def test_encoded_lengths(self) -> None:
        offer = make_offer(b"abc", b"defgh", binder_length=48)
        assert offer.identities_encoded_length() == (2 + 3 + 4) + (2 + 5 + 4)
        assert offer.binders_encoded_length() == 2 * 49

    def test_str_is_readable(self) -> None:
        text = str(make_offer(b"\xde\xad"))
        assert "dead" in text
        assert '"binders"' in text


class TestEncodingBounds:

    @pytest.mark.parametrize("offer", [
        OfferedPsks([PskIdentity(b"", 0)], [b"\x00" * 32]),
        OfferedPsks([PskIdentity(b"\x01" * 0x10000, 0)], [b"\x00" * 32]),
        OfferedPsks([PskIdentity(b"A", 0x100000000)], [b"\x00" * 32]),
        OfferedPsks([PskIdentity(b"A", -1)], [b"\x00" * 32]),
        OfferedPsks([PskIdentity(b"A", 0)], [b"\x00" * 31]),
        OfferedPsks([PskIdentity(b"A", 0)], [b"\x00" * 256]),
        OfferedPsks([PskIdentity(b"A", 0)], []),
        OfferedPsks([], [b"\x00" * 32]),
    ], ids=["empty-identity", "long-identity", "age-overflow", "negative-age",
            "short-binder", "long-binder", "no-binders", "no-identities"])
    def test_offer_out_of_range(self, offer: OfferedPsks) -> None:
        with pytest.raises(InternalError) as info:
            encode_offered_psks(offer)
        assert info.value.description == AlertDescription.internal_error

    def test_list_longer_than_uint16(self) -> None:
        identities = [PskIdentity(b"\x01" * 60000, 0), PskIdentity(b"\x02" * 60000, 0)]
        with pytest.raises(InternalError):
            encode_offered_psks(OfferedPsks(identities, [b"\x00" * 32] * 2))

    def test_extreme_values_survive(self) -> None:
        offer = OfferedPsks([PskIdentity(b"A", 0xFFFFFFFF)], [b"\x00" * 255])
        assert decode_offered_psks(encode_offered_psks(offer)) == offer

    @pytest.mark.parametrize("index", [-1, 0x10000])
    def test_selected_identity_out_of_range(self, index: int) -> None:
        with pytest.raises(InternalError):
            encode_selected_psk(SelectedPsk(index))


class TestOfferedPsksDecodingRejects:

    def _assert_malformed(self, data: bytes) -> None:
        with pytest.raises(MalformedExtension) as info:
            decode_offered_psks(data)
        assert info.value.description == AlertDescription.illegal_parameter

    def test_minimal_offer_accepted(self) -> None:
        offer = decode_offered_psks(MINIMAL_IDENTITIES + MINIMAL_BINDERS)
        assert offer.identities == [PskIdentity(b"A", 0)]
        assert offer.binders == [b"\xbb" * 32]

    def test_fewer_than_44_bytes(self) -> None:
        self._assert_malformed((MINIMAL_IDENTITIES + MINIMAL_BINDERS)[:43])

    def test_identities_length_six(self) -> None:
        self._assert_malformed(b"\x00\x06" + b"\x00" * 42)

    def test_binders_length_thirty_two(self) -> None:
        data = MINIMAL_IDENTITIES + b"\x00\x20" + b"\x1f" + b"\xbb" * 32
        assert len(data) == 44
        self._assert_malformed(data)

    def test_empty_identity(self) -> None:
        identities = b"\x00\x07" + b"\x00\x00" + b"\x00" * 5
        self._assert_malformed(identities + MINIMAL_BINDERS)

    def test_identity_entries_overrun_declared_length(self) -> None:
        identities = b"\x00\x08" + b"\x00\x01" + b"A" + b"\x00" * 4 + b"\x00"
        self._assert_malformed(identities + MINIMAL_BINDERS)

    def test_identity_longer_than_list(self) -> None:
        identities = b"\x00\x07" + b"\x00\x05" + b"A" + b"\x00" * 4
        self._assert_malformed(identities + MINIMAL_BINDERS)

    def test_short_binder_entry(self) -> None:
        binders = b"\x00\x21" + b"\x1f" + b"\xbb" * 32
        self._assert_malformed(MINIMAL_IDENTITIES + binders)

    def test_binders_length_beyond_data(self) -> None:
        binders = b"\x00\x42" + b"\x20" + b"\xbb" * 32
        self._assert_malformed(MINIMAL_IDENTITIES + binders)

    def test_trailing_bytes(self) -> None:
        self._assert_malformed(MINIMAL_IDENTITIES + MINIMAL_BINDERS + b"\x00")

    def test_no_room_for_binders(self) -> None:
        identities = b"\x00\x2c" + b"\x00\x26" + b"I" * 38 + b"\x00" * 4
        self._assert_malformed(identities + b"\x00\x21" + b"\x20")

    def test_mismatched_counts_still_decode(self) -> None:
        # Count checks belong to the server hook, not the codec
        data = encode_offered_psks(OfferedPsks(
            [PskIdentity(b"a", 1), PskIdentity(b"b", 2)], [b"\x00" * 32]))
        offer = decode_offered_psks(data)
        assert len(offer.identities) == 2
        assert len(offer.binders) == 1


class TestSelectedPsk:

    @pytest.mark.parametrize("index", [0, 1, 255, 256, 65535])
    def test_round_trip(self, index: int) -> None:
        data = encode_selected_psk(SelectedPsk(index))
        assert len(data) == 2
        assert decode_selected_psk(data) == SelectedPsk(index)

    def test_big_endian(self) -> None:
        assert encode_selected_psk(SelectedPsk(0x0102)) == b"\x01\x02"

    @pytest.mark.parametrize("data", [b"", b"\x00"])
    def test_too_short(self, data: bytes) -> None:
        with pytest.raises(MalformedExtension):
            decode_selected_psk(data)


class TestPskKeyExchangeModes:

    def test_round_trip(self) -> None:
        modes = [PskKeyExchangeMode.PSK_KE, PskKeyExchangeMode.PSK_DHE_KE]
        data = encode_psk_key_exchange_modes(modes)
        assert data == b"\x02\x00\x01"
        assert decode_psk_key_exchange_modes(data) == modes

    def test_known_modes_decode_to_enum(self) -> None:
        modes = decode_psk_key_exchange_modes(b"\x01\x01")
        assert modes == [PskKeyExchangeMode.PSK_DHE_KE]
        assert isinstance(modes[0], PskKeyExchangeMode)

    def test_unknown_mode_kept(self) -> None:
        assert decode_psk_key_exchange_modes(b"\x02\x01\x07") == [1, 7]

    @pytest.mark.parametrize("data", [b"", b"\x00", b"\x02\x01", b"\x01\x01\x01"])
    def test_malformed(self, data: bytes) -> None:
        with pytest.raises(MalformedExtension):
            decode_psk_key_exchange_modes(data)


class TestExtensionFraming:

    def test_build_and_parse(self) -> None:
        block = (build_extension(ExtensionType.SUPPORTED_VERSIONS, b"\x02\x03\x04")
                 + build_extension(ExtensionType.PRE_SHARED_KEY, b""))
        assert parse_extensions(block) == [
            (ExtensionType.SUPPORTED_VERSIONS, b"\x02\x03\x04"),
            (ExtensionType.PRE_SHARED_KEY, b""),
        ]

    def test_duplicate_rejected(self) -> None:
        block = build_extension(41, b"") * 2
        with pytest.raises(MalformedExtension):
            parse_extensions(block)

    def test_overrun_rejected(self) -> None:
        with pytest.raises(MalformedExtension):
            parse_extensions(b"\x00\x29\x00\x05\x00")
