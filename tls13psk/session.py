"""
TLS 1.3 Resumable Sessions and the Session Store used for PSK lookup
"""

import logging
import os
import threading
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional

from .constants import CIPHER_SUITE_NAMES, TLS_AES_128_GCM_SHA256

logger = logging.getLogger(__name__)


class ResumableSession:
    """
    A session that can be resumed with a PSK.

    Stores all information needed for the binder:
    - session_id: Local cache key
    - psk: The pre-shared key
    - cipher_suite: Selects the hash algorithm for the binder
    - ticket: Single-use PSK identity presented to the server
    - ticket_age_add: Value to obfuscate ticket age
    - ticket_lifetime: How long the ticket is valid (seconds)
    - creation_time: When the ticket was issued or received
    """
    def __init__(self, psk: Optional[bytes], ticket: Optional[bytes],
                 cipher_suite: int = TLS_AES_128_GCM_SHA256,
                 ticket_age_add: int = 0, ticket_lifetime: int = 7 * 24 * 3600,
                 creation_time: float = None, session_id: bytes = None,
                 server_name: str = "", rejoinable: bool = True):
        self.session_id = session_id if session_id is not None else os.urandom(32)
        self.cipher_suite = cipher_suite
        self.ticket_age_add = ticket_age_add
        self.ticket_lifetime = ticket_lifetime
        self.creation_time = creation_time if creation_time is not None else time.time()
        self.server_name = server_name
        self.rejoinable = rejoinable
        self._psk = psk
        self._identity = ticket
        self._identity_lock = threading.Lock()

    @property
    def pre_shared_key(self) -> Optional[bytes]:
        return self._psk

    @property
    def psk_identity(self) -> Optional[bytes]:
        """The ticket, or None once it has been offered."""
        return self._identity

    def consume_psk_identity(self) -> Optional[bytes]:
        """Take the identity for one offer; later calls return None."""
        with self._identity_lock:
            identity, self._identity = self._identity, None
        return identity

    def get_obfuscated_ticket_age(self, current_time: float) -> int:
        """
        Calculate obfuscated ticket age.
        obfuscated_age = (age_ms + ticket_age_add) mod 2^32
        """
        age_ms = int((current_time - self.creation_time) * 1000)
        return (age_ms + self.ticket_age_add) & 0xFFFFFFFF

    def is_valid(self, current_time: float) -> bool:
        """Check if the ticket is still valid."""
        age = current_time - self.creation_time
        return 0 <= age < self.ticket_lifetime

    def is_rejoinable(self, current_time: float = None) -> bool:
        if current_time is None:
            current_time = time.time()
        return self.rejoinable and self.is_valid(current_time)

    def invalidate(self):
        self.rejoinable = False

    def __repr__(self):
        return (f"ResumableSession(id={self.session_id.hex()[:16]}..., "
                f"suite={CIPHER_SUITE_NAMES.get(self.cipher_suite, hex(self.cipher_suite))}, "
                f"lifetime={self.ticket_lifetime}s, "
                f"identity={'unused' if self._identity else 'consumed'})")


class SessionStore(ABC):
    """
    Session cache shared by concurrently handshaking connections.

    Implementations must make lookup() and remove() safe to call from
    several threads at once.
    """

    @abstractmethod
    def lookup(self, identity: bytes) -> Optional[ResumableSession]:
        """Find the session a PSK identity refers to."""

    @abstractmethod
    def remove(self, session_id: bytes):
        """Drop a session so it is never offered or resumed again."""


class InMemorySessionStore(SessionStore):
    """
    Store for sessions, indexed by PSK identity (server side) and by
    server name (client side).
    """
    def __init__(self, max_per_server: int = 2):
        self.max_per_server = max_per_server
        self._lock = threading.Lock()
        self._by_id: Dict[bytes, ResumableSession] = {}
        self._by_identity: Dict[bytes, bytes] = {}
        self._by_server: Dict[str, list] = {}

    def add(self, session: ResumableSession):
        """Add a session to the store."""
        with self._lock:
            self._drop(session.session_id)
            self._by_id[session.session_id] = session
            if session.psk_identity is not None:
                self._by_identity[session.psk_identity] = session.session_id

            key = session.server_name or "default"
            sessions = self._by_server.setdefault(key, [])
            sessions.append(session.session_id)

            # Keep only the last max_per_server sessions per server
            while len(sessions) > self.max_per_server:
                self._drop(sessions[0])

    def lookup(self, identity: bytes) -> Optional[ResumableSession]:
        with self._lock:
            session_id = self._by_identity.get(identity)
            if session_id is None:
                return None
            return self._by_id.get(session_id)

    def get(self, server_name: str, current_time: float = None) -> Optional[ResumableSession]:
        """Get the newest valid session for the server (client side)."""
        if current_time is None:
            current_time = time.time()

        with self._lock:
            for session_id in reversed(self._by_server.get(server_name or "default", [])):
                session = self._by_id[session_id]
                if session.is_rejoinable(current_time):
                    return session
        return None

    def remove(self, session_id: bytes):
        with self._lock:
            self._drop(session_id)

    def _drop(self, session_id: bytes):
        session = self._by_id.pop(session_id, None)
        if session is None:
            return
        for identity, sid in list(self._by_identity.items()):
            if sid == session_id:
                del self._by_identity[identity]
        key = session.server_name or "default"
        if session_id in self._by_server.get(key, []):
            self._by_server[key].remove(session_id)
        logger.debug("Removed session %s from cache", session_id.hex()[:16])

    def __len__(self):
        with self._lock:
            return len(self._by_id)
