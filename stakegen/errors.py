"""Errors raised while building a genesis artifact.

Every error is fatal to the build.  Each class also derives from the closest
builtin exception so callers that only know about ``ValueError`` or
``OSError`` still catch them.
"""

from __future__ import annotations

from typing import Any


class GenesisError(Exception):
    """Base class for all genesis generation failures."""


class ParseError(GenesisError, ValueError):
    """Malformed input document (AVVM dump, blacklist or keyfile)."""


class DecodeError(ParseError):
    """Binary genesis artifact cannot be decoded."""


class IoError(GenesisError, OSError):
    """Keyfile or artifact could not be read or written."""


class DuplicateAddress(GenesisError, ValueError):
    """The same address was supplied by two merged sources."""

    def __init__(self, address: Any) -> None:
        super().__init__(f"duplicate genesis address: {address}")
        self.address = address


class StakeOverflow(GenesisError, OverflowError):
    """A coin value or the total stake exceeds ``MAX_COIN``."""


class NoStakeSourceConfigured(GenesisError, ValueError):
    """No stake source produced any address."""


class SerializationMismatch(GenesisError, RuntimeError):
    """Encoded genesis does not decode back to the same value."""


class PatternCollision(GenesisError, ValueError):
    """Two generated files would be written to the same path."""

    def __init__(self, path: Any) -> None:
        super().__init__(f"more than one output would be written to {path}")
        self.path = path


class InvalidDistribution(GenesisError, ValueError):
    """A fragment's addresses disagree with its stake distribution."""


__all__ = [
    "GenesisError",
    "ParseError",
    "DecodeError",
    "IoError",
    "DuplicateAddress",
    "StakeOverflow",
    "NoStakeSourceConfigured",
    "SerializationMismatch",
    "PatternCollision",
    "InvalidDistribution",
]
