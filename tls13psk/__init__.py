"""
TLS 1.3 pre_shared_key Extension

Provides:
- OfferedPsks/SelectedPsk encoding and parsing
- Binder key derivation and binder compute/verify
- Partial ClientHello reconstruction for the binder transcript
- Server-side resumption decision and client-side offer
- Extension hook tables for a handshake driver
"""

from .binder import check_binder, compute_binder, compute_client_hello_binder, verify_binder
from .config import PskConfiguration
from .constants import ExtensionType, HandshakeType, PskKeyExchangeMode
from .context import (
    ClientHandshakeContext, HandshakeContext, ResumptionState, ServerHandshakeContext
)
from .dispatch import (
    CLIENT_HELLO_HANDLERS, SERVER_HELLO_HANDLERS, ExtensionHandler,
    receive_client_hello, receive_server_hello_extensions, send_client_hello,
    server_hello_extensions
)
from .errors import (
    AlertDescription, BinderMismatch, InternalError, KeyDerivationFailure,
    MalformedExtension, ProtocolSequenceViolation, PskError
)
from .extensions import (
    OfferedPsks, PskIdentity, SelectedPsk, decode_offered_psks, decode_selected_psk,
    encode_offered_psks, encode_selected_psk
)
from .handshake import ClientHello, parse_client_hello, serialize_client_hello
from .key_schedule import BinderKeys, derive_binder_key, derive_binder_keys, derive_finished_key
from .session import InMemorySessionStore, ResumableSession, SessionStore
from .transcript import (
    TranscriptHash, binder_transcript, build_partial_client_hello,
    partial_client_hello_length
)

__version__ = "0.1.0"
