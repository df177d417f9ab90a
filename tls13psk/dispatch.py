"""
Extension Hook Dispatch

Each extension is a small table entry of hooks instead of a class:

    produce(ctx, message) -> Optional[bytes]
    consume(ctx, message, data)
    on_absent(ctx, message)
    on_trade(ctx, message)       after the whole message is in the transcript

Table order is production order; pre_shared_key comes last in ClientHello.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from . import pre_shared_key, psk_modes
from .constants import ExtensionType
from .context import ClientHandshakeContext, HandshakeContext, ServerHandshakeContext
from .errors import PskError
from .handshake import ClientHello, parse_client_hello, serialize_client_hello

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtensionHandler:
    produce: Optional[Callable] = None
    consume: Optional[Callable] = None
    on_absent: Optional[Callable] = None
    on_trade: Optional[Callable] = None


CLIENT_HELLO_HANDLERS: Dict[int, ExtensionHandler] = {
    ExtensionType.PSK_KEY_EXCHANGE_MODES: ExtensionHandler(
        produce=psk_modes.ch_produce,
        consume=psk_modes.ch_consume,
        on_absent=psk_modes.ch_on_absent,
    ),
    ExtensionType.PRE_SHARED_KEY: ExtensionHandler(
        produce=pre_shared_key.ch_produce,
        consume=pre_shared_key.ch_consume,
        on_absent=pre_shared_key.ch_on_absent,
        on_trade=pre_shared_key.ch_on_trade,
    ),
}

SERVER_HELLO_HANDLERS: Dict[int, ExtensionHandler] = {
    ExtensionType.PRE_SHARED_KEY: ExtensionHandler(
        produce=pre_shared_key.sh_produce,
        consume=pre_shared_key.sh_consume,
        on_absent=pre_shared_key.sh_on_absent,
    ),
}


@contextmanager
def fatal_on_error(ctx: HandshakeContext):
    """Drop PSK state before a fatal error leaves the handshake."""
    try:
        yield
    except PskError as exc:
        logger.debug("Fatal alert %s: %s", exc.description.name, exc)
        ctx.abort()
        raise


def produce_extensions(ctx: HandshakeContext, message,
                       handlers: Dict[int, ExtensionHandler]) -> List[Tuple[int, bytes]]:
    extensions = []
    for ext_type, handler in handlers.items():
        if handler.produce is None:
            continue
        data = handler.produce(ctx, message)
        if data is not None:
            extensions.append((ext_type, data))
    return extensions


def produce_client_hello(ctx: ClientHandshakeContext, hello: ClientHello,
                         handlers: Dict[int, ExtensionHandler] = None) -> ClientHello:
    """
    Append the handled extensions to a ClientHello, in table order.

    Every producer sees the ClientHello built so far, which is what lets
    the pre_shared_key producer hash everything before it.
    """
    if handlers is None:
        handlers = CLIENT_HELLO_HANDLERS
    for ext_type, handler in handlers.items():
        if handler.produce is None:
            continue
        data = handler.produce(ctx, hello)
        if data is not None:
            hello = hello.with_extension(ext_type, data)
    return hello


def consume_extensions(ctx: HandshakeContext, message,
                       extensions: List[Tuple[int, bytes]],
                       handlers: Dict[int, ExtensionHandler]):
    """Run consumers in wire order, then absence hooks for what was missing."""
    present = set()
    for ext_type, data in extensions:
        present.add(ext_type)
        handler = handlers.get(ext_type)
        if handler is not None and handler.consume is not None:
            handler.consume(ctx, message, data)

    for ext_type, handler in handlers.items():
        if ext_type not in present and handler.on_absent is not None:
            handler.on_absent(ctx, message)


def trade_extensions(ctx: HandshakeContext, message,
                     handlers: Dict[int, ExtensionHandler]):
    for handler in handlers.values():
        if handler.on_trade is not None:
            handler.on_trade(ctx, message)


def send_client_hello(ctx: ClientHandshakeContext, hello: ClientHello) -> bytes:
    """
    Complete and serialize a ClientHello, adding it to the transcript.

    Args:
        ctx: Client handshake context
        hello: ClientHello carrying the extensions not handled here

    Returns:
        bytes: The handshake message to transmit
    """
    with fatal_on_error(ctx):
        hello = produce_client_hello(ctx, hello)
        message = serialize_client_hello(hello)
        ctx.transcript.feed(message)
    return message


def receive_client_hello(ctx: ServerHandshakeContext, message: bytes) -> ClientHello:
    """
    Consume a received ClientHello.

    Post-processing (binder verification) runs only after the complete
    message has been fed to the transcript.

    Raises:
        PskError: Any fatal condition; ctx has already been cleared
    """
    with fatal_on_error(ctx):
        hello = parse_client_hello(message)
        consume_extensions(ctx, hello, hello.extensions, CLIENT_HELLO_HANDLERS)
        ctx.transcript.feed(message)
        trade_extensions(ctx, hello, CLIENT_HELLO_HANDLERS)
    return hello


def server_hello_extensions(ctx: ServerHandshakeContext) -> List[Tuple[int, bytes]]:
    with fatal_on_error(ctx):
        return produce_extensions(ctx, None, SERVER_HELLO_HANDLERS)


def receive_server_hello_extensions(ctx: ClientHandshakeContext,
                                    extensions: List[Tuple[int, bytes]]):
    with fatal_on_error(ctx):
        consume_extensions(ctx, None, extensions, SERVER_HELLO_HANDLERS)
