"""
Per-endpoint configuration for PSK resumption
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List

from .constants import PskKeyExchangeMode


@dataclass
class PskConfiguration:
    """
    Settings shared by every handshake of one client or server endpoint.

    - enabled: pre_shared_key is available; when False the server ignores
      the extension and the client never produces it
    - resumption: the server is willing to resume / the client wants to offer
    - psk_key_exchange_modes: modes the client advertises alongside its offer
    - clock: seconds since the epoch, used for ticket ages and lifetimes
    - debug: log hook decisions at DEBUG level
    """
    enabled: bool = True
    resumption: bool = True
    psk_key_exchange_modes: List[int] = field(
        default_factory=lambda: [PskKeyExchangeMode.PSK_DHE_KE]
    )
    clock: Callable[[], float] = time.time
    debug: bool = False

    def __post_init__(self):
        if not self.psk_key_exchange_modes:
            raise ValueError("psk_key_exchange_modes must not be empty")
        if self.debug:
            logging.getLogger("tls13psk").setLevel(logging.DEBUG)
