from __future__ import annotations

import pytest

from space_cli.config import SessionConfig
from space_cli.errors import LocalValidationError
from space_cli.model import BidParams, OpenParams
from space_cli.tx_builder import TransactionBuilder, TransactionRequest


class RecordingRPC:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []

    def wallet_send_request(self, wallet, request):
        self.calls.append((wallet, request))
        return [{"txid": "ab" * 32, "events": []}]


def test_send_issues_single_request_with_fee_rate_in_kwu() -> None:
    rpc = RecordingRPC()
    builder = TransactionBuilder(rpc, SessionConfig(wallet="alice"))  # type: ignore[arg-type]

    result = builder.send(OpenParams("@foo", 1000), fee_rate=5)

    assert result == [{"txid": "ab" * 32, "events": []}]
    assert rpc.calls == [
        (
            "alice",
            {
                "bidouts": None,
                "requests": [{"request": "open", "name": "@foo", "amount": 1000}],
                "fee_rate": 1250,
                "dust": None,
                "force": False,
                "confirmed_only": False,
                "skip_tx_check": False,
            },
        )
    ]


def test_build_request_keeps_fee_rate_in_sat_per_vb() -> None:
    builder = TransactionBuilder(RecordingRPC(), SessionConfig())  # type: ignore[arg-type]

    request = builder.build_request(OpenParams("@foo", 1000), fee_rate="5")

    assert request.operations == (OpenParams("@foo", 1000),)
    assert request.fee_rate == 5


@pytest.mark.parametrize("fee_rate", [0, "0", "-3", "fast", "1.5", ""])
def test_invalid_fee_rate_fails_before_any_call(fee_rate) -> None:
    rpc = RecordingRPC()
    builder = TransactionBuilder(rpc, SessionConfig())  # type: ignore[arg-type]

    with pytest.raises(LocalValidationError):
        builder.send(BidParams("@foo", 10), fee_rate=fee_rate)

    assert rpc.calls == []


def test_empty_request_fails_before_any_call() -> None:
    rpc = RecordingRPC()
    builder = TransactionBuilder(rpc, SessionConfig())  # type: ignore[arg-type]

    with pytest.raises(LocalValidationError):
        builder.send(None, fee_rate=5)
    with pytest.raises(LocalValidationError):
        TransactionRequest()

    assert rpc.calls == []


def test_bidouts_without_operation_is_allowed() -> None:
    rpc = RecordingRPC()
    builder = TransactionBuilder(rpc, SessionConfig())  # type: ignore[arg-type]

    builder.send(None, bidouts="3")

    _, request = rpc.calls[0]
    assert request["requests"] == []
    assert request["bidouts"] == 3


@pytest.mark.parametrize("bidouts", [256, -1, "many"])
def test_bidouts_out_of_range_is_rejected(bidouts) -> None:
    builder = TransactionBuilder(RecordingRPC(), SessionConfig())  # type: ignore[arg-type]

    with pytest.raises(LocalValidationError):
        builder.build_request(None, bidouts=bidouts)


def test_session_defaults_apply_unless_overridden() -> None:
    session = SessionConfig(dust=600, force=True, skip_tx_check=True)
    builder = TransactionBuilder(RecordingRPC(), session)  # type: ignore[arg-type]

    defaulted = builder.build_request(BidParams("@foo", 10))
    overridden = builder.build_request(
        BidParams("@foo", 10), dust="800", force=False, skip_tx_check=False, confirmed_only=True
    )

    assert (defaulted.dust, defaulted.force, defaulted.skip_tx_check) == (600, True, True)
    assert (overridden.dust, overridden.force, overridden.skip_tx_check) == (800, False, False)
    assert overridden.confirmed_only is True


def test_request_holds_at_most_one_operation() -> None:
    with pytest.raises(LocalValidationError):
        TransactionRequest(operations=(BidParams("@a", 1), BidParams("@b", 1)))
