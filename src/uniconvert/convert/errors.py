"""Error types for conversion runs and best-effort failure classification."""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional


class UniconvertError(RuntimeError):
    """Base class for errors raised by the conversion package."""


class ConversionValidationError(UniconvertError):
    """Raised before a run starts when its input is unusable."""


class EmptyInputError(ConversionValidationError):
    """Text mode was started without any text."""


class EmptyQueueError(ConversionValidationError):
    """Batch mode was started with nothing queued."""


class QueueItemNotFoundError(UniconvertError, LookupError):
    """Raised when an identity does not name a queued item."""

    def __init__(self, identity: str) -> None:
        super().__init__(f"No queued item with identity '{identity}'.")
        self.identity = identity


class InvalidTransitionError(UniconvertError):
    """Raised when a queue item is moved to a state it cannot reach."""


class ConvertConfigError(UniconvertError, ValueError):
    """Raised when configuration parsing or validation fails."""


class FailureKind(Enum):
    """Why a single conversion failed."""

    PAYLOAD_TOO_LARGE = "payload_too_large"
    UNSUPPORTED_TYPE = "unsupported_type"
    TRANSPORT = "transport"
    AUTH = "auth"
    UNKNOWN = "unknown"


class ConversionFailure(UniconvertError):
    """A conversion failed; ``str(exc)`` is safe to show to the user."""

    kind = FailureKind.UNKNOWN


class PayloadTooLargeError(ConversionFailure):
    kind = FailureKind.PAYLOAD_TOO_LARGE


class UnsupportedTypeError(ConversionFailure):
    kind = FailureKind.UNSUPPORTED_TYPE


class TransportFailureError(ConversionFailure):
    """The request was rejected on the way to the model, usually for size."""

    kind = FailureKind.TRANSPORT


class AuthFailureError(ConversionFailure):
    kind = FailureKind.AUTH


class UnknownFailureError(ConversionFailure):
    kind = FailureKind.UNKNOWN


TRANSPORT_FAILURE_MESSAGE = (
    "The file is too large and the request failed in transit. "
    "Compress the document or upload a file under 5MB."
)
AUTH_FAILURE_MESSAGE = "The API key configuration is invalid."
GENERIC_FAILURE_MESSAGE = "Failed to convert content, please retry."

_STATUS_413 = re.compile(r"\b413\b")
_TRANSPORT_MARKERS = (
    "rpc failed",
    "request entity too large",
    "payload too large",
)
_AUTH_MARKERS = (
    "api_key",
    "api key",
    "invalid_api_key",
    "incorrect api key",
    "authentication",
)


def classify_error(exc: BaseException) -> ConversionFailure:
    """Map ``exc`` to a :class:`ConversionFailure` by inspecting it.

    Matching is heuristic: status codes when the client exposes them, then
    substrings of the message. Unrecognized errors keep their own message.
    """

    if isinstance(exc, ConversionFailure):
        return exc

    message = str(exc).strip()
    lowered = message.lower()
    status = _status_code(exc)

    if (
        status == 413
        or _STATUS_413.search(message)
        or any(marker in lowered for marker in _TRANSPORT_MARKERS)
    ):
        return TransportFailureError(TRANSPORT_FAILURE_MESSAGE)
    if status in (401, 403) or any(
        marker in lowered for marker in _AUTH_MARKERS
    ):
        return AuthFailureError(AUTH_FAILURE_MESSAGE)
    return UnknownFailureError(message or GENERIC_FAILURE_MESSAGE)


def _status_code(exc: BaseException) -> Optional[int]:
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    if isinstance(status, int):
        return status
    return None


__all__ = [
    "UniconvertError",
    "ConversionValidationError",
    "EmptyInputError",
    "EmptyQueueError",
    "QueueItemNotFoundError",
    "InvalidTransitionError",
    "ConvertConfigError",
    "FailureKind",
    "ConversionFailure",
    "PayloadTooLargeError",
    "UnsupportedTypeError",
    "TransportFailureError",
    "AuthFailureError",
    "UnknownFailureError",
    "TRANSPORT_FAILURE_MESSAGE",
    "AUTH_FAILURE_MESSAGE",
    "GENERIC_FAILURE_MESSAGE",
    "classify_error",
]
