from __future__ import annotations


class FictionEngineError(Exception):
    """Base error. ``code`` is the caller-facing status string."""

    code = "internal"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidArgumentError(FictionEngineError):
    code = "invalid-argument"


class NotFoundError(FictionEngineError):
    code = "not-found"


class PermissionDeniedError(FictionEngineError):
    code = "permission-denied"


class InternalError(FictionEngineError):
    code = "internal"


class ConcurrentTurnError(InternalError):
    """Session row changed between the turn's read and its write."""


class OracleResponseError(FictionEngineError):
    """Oracle reply could not be turned into game state.

    Never reaches callers directly: turns degrade to the fallback narrative,
    story creation re-raises as :class:`InternalError`.
    """

    def __init__(self, message: str = "", raw_text: str | None = None):
        super().__init__(message)
        self.raw_text = raw_text


class MalformedOracleResponse(OracleResponseError):
    pass


class IncompleteOracleResponse(OracleResponseError):
    pass


class InvalidWorldState(OracleResponseError):
    pass
