"""
pre_shared_key Extension Hooks (RFC 8446 Section 4.2.11)

ClientHello:
    ch_produce   client  offer the cached session, binder computed eagerly
    ch_consume   server  decode the offer, pick the first resumable identity
    ch_on_absent server  no offer, full handshake
    ch_on_trade  server  verify the binder once the ClientHello is in the transcript

ServerHello:
    sh_produce   server  answer with the selected identity
    sh_consume   client  accept the answer, drop the session from the cache
    sh_on_absent client  server declined, full handshake

This extension MUST be the last extension in ClientHello.
"""

import logging
from typing import Optional

from .binder import check_binder, compute_client_hello_binder
from .constants import ExtensionType
from .context import (
    CH_PRE_SHARED_KEY, PSK_KEY_EXCHANGE_MODES, SH_PRE_SHARED_KEY,
    ClientHandshakeContext, HandshakeContext, ResumptionState, ServerHandshakeContext
)
from .errors import AlertDescription, InternalError, ProtocolSequenceViolation
from .extensions import (
    OfferedPsks, PskIdentity, SelectedPsk, decode_offered_psks, decode_selected_psk,
    encode_offered_psks, encode_selected_psk
)
from .handshake import ClientHello
from .key_schedule import binder_hash_algorithm
from .transcript import binder_transcript

logger = logging.getLogger(__name__)


def ch_produce(ctx: ClientHandshakeContext, hello: ClientHello) -> Optional[bytes]:
    """
    Build the pre_shared_key extension for an outgoing ClientHello.

    Exactly one identity is offered: the ticket of ctx.resuming_session.
    The ticket is consumed here, so it is never offered twice whatever
    the server answers.

    Args:
        ctx: Client handshake context
        hello: The ClientHello with all of its other extensions in place

    Returns:
        bytes: Extension body, or None when there is nothing to offer
    """
    if not ctx.config.enabled or not ctx.is_resumption or ctx.resuming_session is None:
        logger.debug("No session to resume.")
        return None

    session = ctx.resuming_session
    psk = session.pre_shared_key
    if psk is None:
        logger.debug("Existing session has no PSK.")
        return None

    identity = session.consume_psk_identity()
    if identity is None:
        logger.debug("PSK has no identity, or identity was already used")
        return None

    logger.debug("Found resumable session. Preparing PSK message.")

    algorithm = binder_hash_algorithm(session.cipher_suite)
    obfuscated_age = session.get_obfuscated_ticket_age(ctx.config.clock())

    # Placeholder binder of the final length so every length field is final
    prototype = OfferedPsks(
        identities=[PskIdentity(identity, obfuscated_age)],
        binders=[bytes(algorithm.digest_size)],
    )
    binder = compute_client_hello_binder(
        psk, session.cipher_suite, hello, prototype, ctx.transcript
    )

    offer = prototype.with_binders([binder])
    ctx.handshake_extensions[CH_PRE_SHARED_KEY] = offer
    ctx.set_state(ResumptionState.EVALUATING)
    return encode_offered_psks(offer)


def ch_consume(ctx: ServerHandshakeContext, hello: ClientHello, data: bytes):
    """
    Process the client's offer and decide on resumption.

    The binder is not checked here: it covers bytes that only become part
    of the transcript after the whole ClientHello has been consumed.

    Raises:
        MalformedExtension: The offer does not decode
        ProtocolSequenceViolation: Missing psk_key_exchange_modes, PSK not
            last, or identity and binder counts differ
    """
    if not ctx.config.enabled:
        logger.debug("Ignore unavailable pre_shared_key extension")
        return

    offer = decode_offered_psks(data)
    logger.debug("Received pre_shared_key extension: %s", offer)

    if hello.extensions and hello.extensions[-1][0] != ExtensionType.PRE_SHARED_KEY:
        raise ProtocolSequenceViolation(
            "pre_shared_key is not the last extension in ClientHello")

    # psk_key_exchange_modes comes earlier on the wire and must be loaded
    if PSK_KEY_EXCHANGE_MODES not in ctx.handshake_extensions:
        raise ProtocolSequenceViolation(
            "Client sent PSK but not PSK modes, or the PSK "
            "extension is not the last extension")

    if len(offer.identities) != len(offer.binders):
        raise ProtocolSequenceViolation("PSK extension has incorrect number of binders")

    ctx.set_state(ResumptionState.EVALUATING)

    if ctx.is_resumption and ctx.session_store is not None:
        now = ctx.config.clock()
        for index, requested in enumerate(offer.identities):
            session = ctx.session_store.lookup(requested.identity)
            if (session is not None and session.is_rejoinable(now)
                    and session.pre_shared_key is not None):
                logger.debug("Resuming session: %r", session)

                # binder will be checked later
                ctx.resuming_session = session
                ctx.handshake_extensions[SH_PRE_SHARED_KEY] = SelectedPsk(index)
                ctx.set_state(ResumptionState.RESUMING)
                break

    if ctx.state != ResumptionState.RESUMING:
        logger.debug("No resumable session among %d offered identities",
                     len(offer.identities))
        ctx.not_resuming()

    ctx.handshake_extensions[CH_PRE_SHARED_KEY] = offer


def ch_on_absent(ctx: ServerHandshakeContext, hello: ClientHello):
    logger.debug("Handling pre_shared_key absence.")

    # Resumption is only determined by PSK, when enabled
    ctx.not_resuming()


def ch_on_trade(ctx: ServerHandshakeContext, hello: ClientHello):
    """
    Verify the binder of the selected identity.

    Runs after the raw ClientHello has been fed to ctx.transcript.

    Raises:
        BinderMismatch: The binder does not match; resumption is not
            downgraded to a full handshake
    """
    if not ctx.is_resumption or ctx.resuming_session is None:
        return

    offer = ctx.handshake_extensions.get(CH_PRE_SHARED_KEY)
    selected = ctx.handshake_extensions.get(SH_PRE_SHARED_KEY)
    if offer is None or selected is None:
        raise InternalError("Required extensions are unavailable")

    session = ctx.resuming_session
    psk = session.pre_shared_key
    if psk is None:
        raise InternalError("Session has no PSK")

    binder = offer.binders[selected.selected_identity]
    check_binder(psk, session.cipher_suite, binder_transcript(ctx.transcript), binder)
    logger.debug("PSK binder verified for identity %d", selected.selected_identity)


def sh_produce(ctx: ServerHandshakeContext, message=None) -> Optional[bytes]:
    selected = ctx.handshake_extensions.get(SH_PRE_SHARED_KEY)
    if selected is None:
        return None
    return encode_selected_psk(selected)


def sh_consume(ctx: ClientHandshakeContext, message, data: bytes):
    """
    Process the server's selection.

    Raises:
        ProtocolSequenceViolation: No offer was made, or the index is out
            of range of what was offered (only 0 with one identity)
    """
    offer = ctx.handshake_extensions.get(CH_PRE_SHARED_KEY)
    if offer is None or ctx.resuming_session is None:
        raise ProtocolSequenceViolation(
            "Server sent unexpected pre_shared_key extension",
            AlertDescription.unexpected_message)

    selected = decode_selected_psk(data)
    logger.debug("Received pre_shared_key extension: %s", selected)

    if selected.selected_identity >= len(offer.identities):
        raise ProtocolSequenceViolation("Selected identity index is not in correct range.")

    ctx.handshake_extensions[SH_PRE_SHARED_KEY] = selected
    ctx.set_state(ResumptionState.RESUMING)
    logger.debug("Resuming session: %r", ctx.resuming_session)

    # remove the session from the cache
    if ctx.session_store is not None:
        ctx.session_store.remove(ctx.resuming_session.session_id)


def sh_on_absent(ctx: HandshakeContext, message=None):
    logger.debug("Handling pre_shared_key absence.")

    # The server refused to resume, or the client did not
    # request 1.3 resumption.
    ctx.not_resuming()
