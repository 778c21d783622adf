"""Wallet operations understood by spaced.

Each dataclass below is one variant of the ``RpcWalletRequest`` union accepted
by ``walletsendrequest``. Space names are expected in normalized form (see
:func:`space_cli.names.normalize_space`); only structural checks happen here,
ownership and auction rules are enforced remotely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Tuple, Union

from .errors import LocalValidationError
from .names import SPACE_SIGIL


def _require_space(name: str) -> None:
    if not isinstance(name, str) or not name.startswith(SPACE_SIGIL) or len(name) == 1:
        raise LocalValidationError(f"Expected a normalized space name, got {name!r}")


def _require_amount(amount: int, label: str) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise LocalValidationError(f"{label} must be a non-negative integer amount in satoshi")


def _require_destination(to: str) -> None:
    if not isinstance(to, str) or not to.strip():
        raise LocalValidationError("A recipient space or address is required")


@dataclass(frozen=True)
class OpenParams:
    """Open an auction for ``name`` with an initial bid."""

    name: str
    amount: int

    request = "open"

    def __post_init__(self) -> None:
        _require_space(self.name)
        _require_amount(self.amount, "Initial bid")

    def to_rpc(self) -> dict[str, Any]:
        return {"request": self.request, "name": self.name, "amount": self.amount}


@dataclass(frozen=True)
class BidParams:
    name: str
    amount: int

    request = "bid"

    def __post_init__(self) -> None:
        _require_space(self.name)
        _require_amount(self.amount, "Bid amount")

    def to_rpc(self) -> dict[str, Any]:
        return {"request": self.request, "name": self.name, "amount": self.amount}


@dataclass(frozen=True)
class RegisterParams:
    """Register a won auction, optionally straight to another recipient."""

    name: str
    to: str | None = None

    request = "register"

    def __post_init__(self) -> None:
        _require_space(self.name)
        if self.to is not None:
            _require_destination(self.to)

    def to_rpc(self) -> dict[str, Any]:
        return {"request": self.request, "name": self.name, "to": self.to}


@dataclass(frozen=True)
class TransferSpacesParams:
    spaces: Tuple[str, ...]
    to: str

    request = "transfer"

    def __post_init__(self) -> None:
        object.__setattr__(self, "spaces", tuple(self.spaces))
        if not self.spaces:
            raise LocalValidationError("At least one space is required for a transfer")
        for space in self.spaces:
            _require_space(space)
        _require_destination(self.to)

    def to_rpc(self) -> dict[str, Any]:
        return {"request": self.request, "spaces": list(self.spaces), "to": self.to}


@dataclass(frozen=True)
class SendCoinsParams:
    amount: int
    to: str

    request = "send"

    def __post_init__(self) -> None:
        _require_amount(self.amount, "Amount")
        _require_destination(self.to)

    def to_rpc(self) -> dict[str, Any]:
        return {"request": self.request, "amount": self.amount, "to": self.to}


@dataclass(frozen=True)
class ExecuteParams:
    """Run a raw space script against the spaces listed in ``context``.

    ``space_script`` is produced by a builder in :mod:`space_cli.script` and is
    sent hex encoded.
    """

    context: Tuple[str, ...]
    space_script: bytes = field(repr=False)

    request = "execute"

    def __post_init__(self) -> None:
        object.__setattr__(self, "context", tuple(self.context))
        if not self.context:
            raise LocalValidationError("Execute requires at least one space in context")
        for space in self.context:
            _require_space(space)
        if not isinstance(self.space_script, (bytes, bytearray)):
            raise LocalValidationError("Execute script must be raw bytes")

    def to_rpc(self) -> dict[str, Any]:
        return {
            "request": self.request,
            "context": list(self.context),
            "space_script": bytes(self.space_script).hex(),
        }


WalletOperation = Union[
    OpenParams,
    BidParams,
    RegisterParams,
    TransferSpacesParams,
    SendCoinsParams,
    ExecuteParams,
]

OPERATION_TYPES: Tuple[type, ...] = (
    OpenParams,
    BidParams,
    RegisterParams,
    TransferSpacesParams,
    SendCoinsParams,
    ExecuteParams,
)
