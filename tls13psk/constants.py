"""
TLS 1.3 Constants for the pre_shared_key extension (RFC 8446)
"""

from enum import IntEnum

TLS_VERSION_1_2 = 0x0303

# TLS 1.3 cipher suites
TLS_AES_128_GCM_SHA256 = 0x1301
TLS_AES_256_GCM_SHA384 = 0x1302
TLS_CHACHA20_POLY1305_SHA256 = 0x1303

CIPHER_SUITE_NAMES = {
    0x1301: "TLS_AES_128_GCM_SHA256",
    0x1302: "TLS_AES_256_GCM_SHA384",
    0x1303: "TLS_CHACHA20_POLY1305_SHA256"
}


class ExtensionType(IntEnum):
    SERVER_NAME = 0
    SUPPORTED_GROUPS = 10
    SIGNATURE_ALGORITHMS = 13
    ALPN = 16
    PRE_SHARED_KEY = 41
    EARLY_DATA = 42
    SUPPORTED_VERSIONS = 43
    PSK_KEY_EXCHANGE_MODES = 45
    KEY_SHARE = 51


EXTENSION_NAMES = {
    0: "server_name",
    10: "supported_groups",
    13: "signature_algorithms",
    16: "alpn",
    41: "pre_shared_key",
    42: "early_data",
    43: "supported_versions",
    45: "psk_key_exchange_modes",
    51: "key_share",
}


class PskKeyExchangeMode(IntEnum):
    PSK_KE = 0  # PSK-only key exchange (no ECDH)
    PSK_DHE_KE = 1  # PSK with ECDH key exchange


class HandshakeType(IntEnum):
    CLIENT_HELLO = 1
    SERVER_HELLO = 2
    NEW_SESSION_TICKET = 4
    ENCRYPTED_EXTENSIONS = 8
    FINISHED = 20


HANDSHAKE_TYPE_NAMES = {
    1: "ClientHello",
    2: "ServerHello",
    4: "NewSessionTicket",
    8: "EncryptedExtensions",
    20: "Finished"
}

# Handshake header: type (1 byte) + length (3 bytes)
HANDSHAKE_HEADER_LENGTH = 4

# OfferedPsks wire minimums
#   identities<7..2^16-1>: identity length (2) + identity (>= 1) + age (4)
#   binders<33..2^16-1>:   binder length (1) + binder (>= 32)
MIN_IDENTITIES_LENGTH = 7
MIN_BINDERS_LENGTH = 33
MIN_BINDER_LENGTH = 32
MAX_BINDER_LENGTH = 255
MIN_OFFERED_PSKS_LENGTH = 2 + MIN_IDENTITIES_LENGTH + 2 + MIN_BINDERS_LENGTH  # 44
MIN_BINDERS_SECTION_LENGTH = 2 + MIN_BINDERS_LENGTH  # 35

# "tls13 " is prepended by hkdf_expand_label
LABEL_RES_BINDER = b"res binder"
LABEL_FINISHED = b"finished"
