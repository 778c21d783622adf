"""Transaction request composition for the spaced wallet."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .config import SessionConfig
from .errors import LocalValidationError
from .fees import parse_amount, parse_fee_rate, sat_vb_to_sat_kwu
from .model import OPERATION_TYPES, WalletOperation
from .rpc_client import SpacedRPCClient

logger = logging.getLogger(__name__)

MAX_BIDOUTS = 0xFF


@dataclass(frozen=True)
class TransactionRequest:
    """A single ``walletsendrequest`` payload.

    ``fee_rate`` is kept in sat/vB; :meth:`to_rpc` converts it to the sat/kwu
    unit spaced expects on the wire.
    """

    operations: Tuple[WalletOperation, ...] = ()
    bidouts: int | None = None
    fee_rate: int | None = None
    dust: int | None = None
    force: bool = False
    confirmed_only: bool = False
    skip_tx_check: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "operations", tuple(self.operations))
        if len(self.operations) > 1:
            raise LocalValidationError("Only one wallet operation can be sent per transaction")
        for operation in self.operations:
            if not isinstance(operation, OPERATION_TYPES):
                raise LocalValidationError(f"Unsupported wallet operation: {operation!r}")
        if not self.operations and self.bidouts is None:
            raise LocalValidationError("Nothing to submit: no operation and no bid outputs requested")

    def to_rpc(self) -> Dict[str, Any]:
        return {
            "bidouts": self.bidouts,
            "requests": [operation.to_rpc() for operation in self.operations],
            "fee_rate": sat_vb_to_sat_kwu(self.fee_rate) if self.fee_rate is not None else None,
            "dust": self.dust,
            "force": self.force,
            "confirmed_only": self.confirmed_only,
            "skip_tx_check": self.skip_tx_check,
        }


def _parse_bidouts(raw: Any) -> int:
    if isinstance(raw, bool):
        raise LocalValidationError(f"Invalid bid output count: {raw!r}")
    try:
        value = raw if isinstance(raw, int) else int(str(raw).strip())
    except ValueError as exc:
        raise LocalValidationError(f"Invalid bid output count: {raw!r}") from exc
    if not 0 <= value <= MAX_BIDOUTS:
        raise LocalValidationError(f"Bid output count must be between 0 and {MAX_BIDOUTS}, got {value}")
    return value


class TransactionBuilder:
    """Compose wallet operations into one request and submit it to spaced.

    Session settings supply ``dust``, ``force`` and ``skip_tx_check`` unless a
    call overrides them. Validation happens before the RPC client is touched.
    """

    def __init__(self, rpc: SpacedRPCClient, session: SessionConfig) -> None:
        self.rpc = rpc
        self.session = session

    def build_request(
        self,
        operation: WalletOperation | None = None,
        *,
        bidouts: int | str | None = None,
        fee_rate: int | str | None = None,
        dust: int | str | None = None,
        force: bool | None = None,
        confirmed_only: bool = False,
        skip_tx_check: bool | None = None,
    ) -> TransactionRequest:
        if operation is None and bidouts is None:
            raise LocalValidationError("Nothing to submit: no operation and no bid outputs requested")
        return TransactionRequest(
            operations=() if operation is None else (operation,),
            bidouts=_parse_bidouts(bidouts) if bidouts is not None else None,
            fee_rate=parse_fee_rate(fee_rate) if fee_rate is not None else None,
            dust=parse_amount(dust, "dust") if dust is not None else self.session.dust,
            force=self.session.force if force is None else force,
            confirmed_only=confirmed_only,
            skip_tx_check=self.session.skip_tx_check if skip_tx_check is None else skip_tx_check,
        )

    def submit(self, request: TransactionRequest) -> Any:
        """Send *request* as one ``walletsendrequest`` call."""

        logger.info(
            "Submitting %s to wallet %s",
            ", ".join(op.request for op in request.operations) or f"{request.bidouts} bidouts",
            self.session.wallet,
        )
        return self.rpc.wallet_send_request(self.session.wallet, request.to_rpc())

    def send(self, operation: WalletOperation | None = None, **shaping: Any) -> Any:
        """Build and submit in one step; see :meth:`build_request` for options."""

        return self.submit(self.build_request(operation, **shaping))
