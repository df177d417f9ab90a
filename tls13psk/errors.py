"""
Fatal handshake errors raised while processing pre_shared_key

Every error carries the TLS alert description the connection must be
closed with. Catching one means the handshake is over; there is no retry
at this layer.
"""

from enum import IntEnum
from typing import Optional


class AlertDescription(IntEnum):
    unexpected_message = 10
    illegal_parameter = 47
    internal_error = 80


class PskError(Exception):
    """Base class for all fatal pre_shared_key errors."""
    description: AlertDescription = AlertDescription.internal_error

    def __init__(self, message: str, description: Optional[AlertDescription] = None):
        super().__init__(message)
        if description is not None:
            self.description = description


class MalformedExtension(PskError):
    """Length or bounds violation while decoding the extension."""
    description = AlertDescription.illegal_parameter


class ProtocolSequenceViolation(PskError):
    """
    The extension appeared where it must not, or without its companion
    psk_key_exchange_modes, or the server selected an identity that was
    never offered.
    """
    description = AlertDescription.illegal_parameter


class BinderMismatch(PskError):
    description = AlertDescription.illegal_parameter


class InternalError(PskError):
    description = AlertDescription.internal_error


class KeyDerivationFailure(InternalError):
    """The digest or HKDF primitive failed; never caused by peer input."""
