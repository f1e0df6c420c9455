from enum import Enum
from typing import Optional


class IntellensError(Exception):
    """Base class for errors raised by the analysis pipeline."""


class FileReadError(IntellensError):
    """The selected input file could not be read or encoded."""


class BackendErrorKind(str, Enum):
    EMPTY_RESPONSE = "empty_response"
    MALFORMED_RESPONSE = "malformed_response"
    TRANSPORT = "transport"
    TIMEOUT = "timeout"


_DEFAULT_MESSAGES = {
    BackendErrorKind.EMPTY_RESPONSE: "empty response",
    BackendErrorKind.MALFORMED_RESPONSE: "malformed response",
    BackendErrorKind.TRANSPORT: "backend request failed",
    BackendErrorKind.TIMEOUT: "backend request timed out",
}


class BackendError(IntellensError):
    """Failure of the analysis backend, tagged with a BackendErrorKind."""

    def __init__(self, kind: BackendErrorKind, message: Optional[str] = None):
        self.kind = kind
        super().__init__(message or _DEFAULT_MESSAGES[kind])

    @classmethod
    def empty_response(cls) -> "BackendError":
        return cls(BackendErrorKind.EMPTY_RESPONSE)

    @classmethod
    def malformed_response(cls, detail: Optional[str] = None) -> "BackendError":
        message = _DEFAULT_MESSAGES[BackendErrorKind.MALFORMED_RESPONSE]
        if detail:
            message = f"{message}: {detail}"
        return cls(BackendErrorKind.MALFORMED_RESPONSE, message)

    @classmethod
    def transport(cls, detail: Optional[str] = None) -> "BackendError":
        message = _DEFAULT_MESSAGES[BackendErrorKind.TRANSPORT]
        if detail:
            message = f"{message}: {detail}"
        return cls(BackendErrorKind.TRANSPORT, message)

    @classmethod
    def timeout(cls, seconds: Optional[float] = None) -> "BackendError":
        message = _DEFAULT_MESSAGES[BackendErrorKind.TIMEOUT]
        if seconds is not None:
            message = f"{message} after {seconds:g}s"
        return cls(BackendErrorKind.TIMEOUT, message)
