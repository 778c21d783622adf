"""Error taxonomy and classification for space-cli.

Every failure the client can observe is raised as one of the exception
classes below and converted by :func:`classify_error` into a
:class:`ReportableError`, the only shape of failure that reaches the user.
The mapping is closed: an exception outside the table is a programming error
and is not turned into a report.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

import requests
from urllib3.exceptions import ReadTimeoutError


class ErrorCategory(str, Enum):
    """Reportable failure categories."""

    TRANSPORT = "transport"
    PROTOCOL_DECODE = "protocol_decode"
    REMOTE_REJECTED = "remote_rejected"
    SUBSCRIPTION_INVALID = "subscription_invalid"
    REQUEST_TIMEOUT = "request_timeout"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    LOCAL_VALIDATION = "local_validation"


class SpaceCliError(RuntimeError):
    """Base class for every failure raised by space-cli."""

    category: ErrorCategory


class LocalValidationError(SpaceCliError, ValueError):
    """Raised when input is structurally invalid before any network call."""

    category = ErrorCategory.LOCAL_VALIDATION


class ConfigurationError(LocalValidationError):
    """Raised when configuration is invalid."""


class RPCError(SpaceCliError):
    """Raised when spaced answers with a JSON-RPC error object."""

    category = ErrorCategory.REMOTE_REJECTED

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message


class RPCTransportError(SpaceCliError):
    """Raised when the RPC endpoint is unreachable or answers at the HTTP level."""

    category = ErrorCategory.TRANSPORT

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RPCTimeoutError(SpaceCliError):
    """Raised when the endpoint accepted the request but did not answer in time."""

    category = ErrorCategory.REQUEST_TIMEOUT


class RPCDecodeError(SpaceCliError):
    """Raised when the response body does not match the JSON-RPC envelope."""

    category = ErrorCategory.PROTOCOL_DECODE


class RPCCapacityError(SpaceCliError):
    """Raised when no request slot is free on the client."""

    category = ErrorCategory.CAPACITY_EXCEEDED


class RPCSubscriptionError(SpaceCliError):
    """Raised for an unknown subscription id on streaming calls."""

    category = ErrorCategory.SUBSCRIPTION_INVALID


@dataclass(frozen=True)
class ReportableError:
    """User-facing description of a failed command."""

    category: ErrorCategory
    detail: str
    code: int | None = None
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"category": self.category.value, "detail": self.detail}
        if self.code is not None:
            data["code"] = self.code
        if self.message is not None:
            data["message"] = self.message
        return data

    def render(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def is_read_timeout(exc: BaseException) -> bool:
    """True when *exc* is a timeout while waiting for or reading the response.

    requests re-raises a timeout hit while streaming the body as a plain
    ``ConnectionError`` wrapping urllib3's ``ReadTimeoutError``.
    """

    if isinstance(exc, requests.ConnectTimeout):
        return False
    if isinstance(exc, requests.Timeout):
        return True
    if isinstance(exc, requests.ConnectionError):
        wrapped = exc.args[0] if exc.args else None
        return isinstance(wrapped, ReadTimeoutError) or isinstance(
            exc.__context__, ReadTimeoutError
        )
    return False


def classify_error(exc: BaseException) -> ReportableError:
    """Map *exc* onto exactly one :class:`ReportableError`.

    Raw ``requests`` and ``json`` failures are accepted as well so a caller
    that bypasses :class:`~space_cli.rpc_client.SpacedRPCClient` still gets a
    stable report. Anything else raises :class:`TypeError`.
    """

    if isinstance(exc, RPCError):
        return ReportableError(
            ErrorCategory.REMOTE_REJECTED, str(exc), code=exc.code, message=exc.message
        )
    if isinstance(exc, LocalValidationError):
        return ReportableError(ErrorCategory.LOCAL_VALIDATION, str(exc), message=str(exc))
    if isinstance(exc, SpaceCliError):
        return ReportableError(exc.category, str(exc))

    # requests.JSONDecodeError is also a RequestException.
    if isinstance(exc, json.JSONDecodeError):
        return ReportableError(ErrorCategory.PROTOCOL_DECODE, f"Parse error: {exc}")
    if is_read_timeout(exc):
        return ReportableError(ErrorCategory.REQUEST_TIMEOUT, f"Request timeout: {exc}")
    # ConnectTimeout is both a Timeout and a ConnectionError; the endpoint was
    # never reached, so it counts as a transport failure.
    if isinstance(exc, requests.RequestException):
        return ReportableError(ErrorCategory.TRANSPORT, f"Transport error: {exc}")

    raise TypeError(f"unclassified failure: {type(exc).__name__}: {exc}")
