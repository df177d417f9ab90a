"""
Per-connection Handshake Context for PSK Resumption
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from .config import PskConfiguration
from .session import ResumableSession, SessionStore
from .transcript import TranscriptHash

logger = logging.getLogger(__name__)


class ResumptionState(Enum):
    """PSK resumption decision for one handshake"""
    NO_OFFER = "NO_OFFER"          # No pre_shared_key seen yet
    EVALUATING = "EVALUATING"      # Offer decoded, looking up identities
    RESUMING = "RESUMING"          # An identity was accepted
    NOT_RESUMING = "NOT_RESUMING"  # Full handshake


# Keys of HandshakeContext.handshake_extensions for the two message forms
CH_PRE_SHARED_KEY = "ch_pre_shared_key"
SH_PRE_SHARED_KEY = "sh_pre_shared_key"
PSK_KEY_EXCHANGE_MODES = "psk_key_exchange_modes"


class HandshakeContext:
    """
    State owned by a single handshake.

    Not shared between connections and not touched concurrently. The
    session store is the only collaborator shared across handshakes.
    """

    def __init__(self, config: PskConfiguration = None,
                 session_store: SessionStore = None,
                 transcript: TranscriptHash = None):
        self.config = config if config is not None else PskConfiguration()
        self.session_store = session_store
        self.transcript = transcript if transcript is not None else TranscriptHash()

        self.is_resumption = self.config.resumption
        self.resuming_session: Optional[ResumableSession] = None
        self.state = ResumptionState.NO_OFFER

        # Decoded extension values stashed between hooks
        self.handshake_extensions: Dict[str, Any] = {}

    def set_state(self, state: ResumptionState):
        logger.debug("PSK %s -> %s", self.state.value, state.value)
        self.state = state

    def not_resuming(self):
        self.is_resumption = False
        self.resuming_session = None
        self.set_state(ResumptionState.NOT_RESUMING)

    def abort(self):
        """Discard everything PSK related after a fatal error."""
        self.handshake_extensions.clear()
        self.is_resumption = False
        self.resuming_session = None
        self.set_state(ResumptionState.NOT_RESUMING)


class ClientHandshakeContext(HandshakeContext):
    def __init__(self, config: PskConfiguration = None,
                 session_store: SessionStore = None,
                 transcript: TranscriptHash = None,
                 resuming_session: ResumableSession = None):
        super().__init__(config, session_store, transcript)
        self.resuming_session = resuming_session


class ServerHandshakeContext(HandshakeContext):
    pass
