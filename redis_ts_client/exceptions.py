"""
Errors raised by the time series helpers.

Anything raised by redis-py itself (connection failures, server error
replies, authentication failures) is never wrapped and reaches the caller
unchanged.
"""

from typing import Any

from redis.exceptions import RedisError


class TsError(RedisError):
    """Base class for errors originating in this package."""


class InvalidArgumentError(TsError, ValueError):
    """A request value was rejected before being sent to the server."""


class DecodeError(TsError):
    """A reply did not have the shape the command expects."""

    def __init__(self, expected: str, received: Any, command: str = ""):
        self.expected = expected
        self.received = received
        self.command = command
        prefix = f"{command}: " if command else ""
        super().__init__(f"{prefix}expected {expected}, got {received!r}")
