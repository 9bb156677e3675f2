"""Error taxonomy shared by the registry clients and the resolver.

Registry clients raise ``ModMetaError``; the resolver catches it and moves to
the next fallback tier. Nothing raised here reaches the consumer of a
resolution.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    DEFINITIVE_MISS = "DEFINITIVE_MISS"
    AMBIGUOUS_MATCH = "AMBIGUOUS_MATCH"
    STORAGE_ERROR = "STORAGE_ERROR"
    INVALID_CATALOG = "INVALID_CATALOG"


class ModMetaError(Exception):
    """Engine error carrying a machine-readable code.

    ``recoverable`` tells the caller whether the same request may succeed
    later (network blips) or whether the registry has answered for good.
    """

    def __init__(self, code: ErrorCode, message: str, recoverable: bool = False) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} code={self.code!s} message={self.message!r}>"


def transport_error(message: str) -> ModMetaError:
    return ModMetaError(ErrorCode.TRANSPORT_ERROR, message, recoverable=True)


def definitive_miss(message: str) -> ModMetaError:
    return ModMetaError(ErrorCode.DEFINITIVE_MISS, message, recoverable=False)
