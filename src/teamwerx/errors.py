"""Full error hierarchy for teamwerx.

Every public error class inherits from TeamwerxError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Error codes are defined as a :class:`str` enum so that they serialise
naturally to JSON and can be matched with simple ``==`` comparisons.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error teamwerx can raise."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    DIVERGED = "DIVERGED"
    MALFORMED_STATE = "MALFORMED_STATE"
    APPLY_FAILED = "APPLY_FAILED"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class TeamwerxError(Exception):
    """Base exception for all teamwerx errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Input / storage errors
# ---------------------------------------------------------------------------

class TeamwerxValidationError(TeamwerxError):
    """A required field is empty or an operation type is unknown.

    The merge call that raised it has not written anything.

    Context keys: ``field``, ``value``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )

    @property
    def field(self) -> str | None:
        return self.context.get("field")


class TeamwerxNotFoundError(TeamwerxError):
    """The requested spec or change does not exist.

    Context keys: ``resource_type``, ``resource_id``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message=message,
            context=context,
            cause=cause,
        )


class TeamwerxMalformedStateError(TeamwerxError):
    """Persisted state (change JSON, spec markdown) could not be read or
    decoded.

    Context keys: ``path``, ``reason``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.MALFORMED_STATE,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Merge errors
# ---------------------------------------------------------------------------

class TeamwerxDivergedError(TeamwerxError):
    """The spec has changed since the delta's base fingerprint was taken.

    Context keys: ``domain``, ``base_fingerprint``, ``current_fingerprint``,
    ``reason``, ``details`` (per-requirement changes, may be empty).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.DIVERGED,
            message=message,
            context=context,
            cause=cause,
        )

    @property
    def domain(self) -> str:
        return self.context.get("domain", "")

    @property
    def base_fingerprint(self) -> str:
        return self.context.get("base_fingerprint", "")

    @property
    def current_fingerprint(self) -> str:
        return self.context.get("current_fingerprint", "")


class TeamwerxApplyError(TeamwerxError):
    """Wrapper raised when a change could not be applied.

    The underlying failure (divergence, validation, I/O) is available as
    ``cause``; its message is embedded so callers can match on it.

    Context keys: ``change_id``, ``domain``, ``delta_index``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.APPLY_FAILED,
            message=message,
            context=context,
            cause=cause,
        )
