"""
Level Up Dashboard - Gateway Errors
Exception hierarchy raised by the remote scoring gateway
"""

from typing import Optional


class GatewayError(Exception):
    """Base class for every failure talking to the scoring service"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GatewayTransportError(GatewayError):
    """Network failure or server-side (5xx) error"""


class GatewayValidationError(GatewayError):
    """The server rejected the request payload (unknown ids, bad values)"""


class GatewayAuthorizationError(GatewayError):
    """Missing or rejected bearer credential on a mutating call"""


class AuthenticationError(GatewayError):
    """Login rejected; `reason` carries the server's message when it sent one"""

    def __init__(self, message: str, reason: Optional[str] = None,
                 status_code: Optional[int] = None):
        super().__init__(message, status_code)
        self.reason = reason
