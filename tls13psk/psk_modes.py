"""
psk_key_exchange_modes Extension Hooks (RFC 8446 Section 4.2.9)

A client offering pre_shared_key MUST also send this extension; the server
refuses a PSK offer that arrives without it.
"""

import logging
from typing import Optional

from .context import PSK_KEY_EXCHANGE_MODES, ClientHandshakeContext, ServerHandshakeContext
from .extensions import decode_psk_key_exchange_modes, encode_psk_key_exchange_modes
from .handshake import ClientHello

logger = logging.getLogger(__name__)


def ch_produce(ctx: ClientHandshakeContext, hello: ClientHello) -> Optional[bytes]:
    """Advertise the configured modes whenever PSK is available."""
    if not ctx.config.enabled:
        return None
    modes = list(ctx.config.psk_key_exchange_modes)
    ctx.handshake_extensions[PSK_KEY_EXCHANGE_MODES] = modes
    return encode_psk_key_exchange_modes(modes)


def ch_consume(ctx: ServerHandshakeContext, hello: ClientHello, data: bytes):
    if not ctx.config.enabled:
        logger.debug("Ignore unavailable psk_key_exchange_modes extension")
        return

    modes = decode_psk_key_exchange_modes(data)
    ctx.handshake_extensions[PSK_KEY_EXCHANGE_MODES] = modes

    if not set(modes) & set(ctx.config.psk_key_exchange_modes):
        logger.debug("No supported psk_key_exchange_modes in %s, no resumption", modes)
        ctx.is_resumption = False


def ch_on_absent(ctx: ServerHandshakeContext, hello: ClientHello):
    logger.debug("Handling psk_key_exchange_modes absence.")
