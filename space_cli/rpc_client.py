"""RPC client for interacting with a spaced wallet service."""

from __future__ import annotations

"""Typed JSON-RPC client for spaced.

Each helper maps directly to one RPC method exposed by spaced and returns the
decoded ``result`` untouched. No wallet or auction logic lives here and no
call is ever retried; every failure is raised as one of the classes in
:mod:`space_cli.errors` so the CLI can report it uniformly.
"""

import json
import logging
import re
import uuid
from typing import Any, Dict, Optional

import requests
from requests import RequestException, Response

from .config import SessionConfig
from .errors import (
    LocalValidationError,
    RPCCapacityError,
    RPCDecodeError,
    RPCError,
    RPCTimeoutError,
    RPCTransportError,
    is_read_timeout,
)
from .fees import parse_fee_rate, sat_vb_to_sat_kwu

logger = logging.getLogger(__name__)

ADDRESS_KINDS = ("coin", "space")
_TXID_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def parse_txid(raw: str) -> str:
    if not _TXID_RE.match(raw or ""):
        raise LocalValidationError(f"Invalid txid: {raw!r}")
    return raw.lower()


def parse_outpoint(raw: str) -> str:
    """Validate a ``txid:vout`` outpoint and return it in canonical form."""

    txid, sep, vout = (raw or "").rpartition(":")
    if not sep:
        raise LocalValidationError(f"Invalid outpoint {raw!r}: expected <txid>:<vout>")
    txid = parse_txid(txid)
    if not vout.isdigit() or int(vout) > 0xFFFFFFFF:
        raise LocalValidationError(f"Invalid outpoint {raw!r}: bad output index")
    return f"{txid}:{int(vout)}"


class SpacedRPCClient:
    """Typed JSON-RPC client for spaced.

    The client holds a single request slot: spaced commands are one-shot, so
    a second call while one is outstanding is refused with
    :class:`~space_cli.errors.RPCCapacityError` instead of being queued.
    """

    max_slots = 1

    def __init__(self, config: SessionConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self._session = session or requests.Session()
        self._in_flight = 0

    @property
    def url(self) -> str:
        return self.config.rpc_url

    def _where(self) -> str:
        return f"Rpc url: {self.config.rpc_url} (network: {self.config.network})"

    def call(self, method: str, params: Optional[list[Any]] = None) -> Any:
        """Perform a JSON-RPC request."""

        if self._in_flight >= self.max_slots:
            raise RPCCapacityError(
                f"Max concurrent requests exceeded ({self.max_slots}); refusing {method}"
            )
        request_id = str(uuid.uuid4())
        payload = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": params or [],
        }
        logger.debug("RPC call %s params=%s", method, params)
        self._in_flight += 1
        try:
            response = self._post(payload)
        finally:
            self._in_flight -= 1
        return self._decode(response, method, request_id)

    def _post(self, payload: Dict[str, Any]) -> Response:
        try:
            return self._session.post(
                self.config.rpc_url,
                data=json.dumps(payload),
                headers={"content-type": "application/json"},
                auth=self.config.auth,
                timeout=self.config.timeout,
            )
        except RequestException as exc:
            if is_read_timeout(exc):
                self._log_failure("RPC request timed out", exc)
                raise RPCTimeoutError(
                    f"Request timeout after {self.config.timeout:g}s: {self._where()}"
                ) from exc
            self._log_failure("RPC connection failed", exc)
            raise RPCTransportError(f"Transport error: {exc}: {self._where()}") from exc

    def _log_failure(self, what: str, exc: Exception) -> None:
        logger.error("%s: %s", what, exc, exc_info=logger.isEnabledFor(logging.DEBUG))

    def _decode(self, response: Response, method: str, request_id: str) -> Any:
        try:
            body = response.json()
        except ValueError as exc:
            if not response.ok:
                logger.error("RPC HTTP error %s from %s", response.status_code, response.url)
                raise RPCTransportError(
                    f"Transport error: HTTP {response.status_code}: {self._where()}",
                    status_code=response.status_code,
                ) from exc
            logger.debug("RPC JSON parse error: %s", response.text, exc_info=True)
            raise RPCDecodeError(f"Parse error: malformed JSON in response to {method}") from exc

        if not isinstance(body, dict):
            raise RPCDecodeError(f"Parse error: expected a JSON object in response to {method}")

        error = body.get("error")
        if error is not None:
            if (
                not isinstance(error, dict)
                or isinstance(error.get("code"), bool)
                or not isinstance(error.get("code"), int)
            ):
                raise RPCDecodeError(f"Parse error: malformed error object in response to {method}")
            logger.debug("RPC %s rejected: %s", method, error)
            raise RPCError(error["code"], str(error.get("message", "")))

        if not response.ok:
            logger.error("RPC HTTP error %s from %s", response.status_code, response.url)
            raise RPCTransportError(
                f"Transport error: HTTP {response.status_code}: {self._where()}",
                status_code=response.status_code,
            )
        if body.get("id") != request_id:
            raise RPCDecodeError(
                f"Parse error: response id {body.get('id')!r} does not match request {request_id}"
            )
        if "result" not in body:
            raise RPCDecodeError(f"Parse error: response to {method} has neither result nor error")
        return body["result"]

    # Read-only queries ----------------------------------------------------

    def get_server_info(self) -> Dict[str, Any]:
        return self.call("getserverinfo")

    def get_rollout(self, target: int) -> Any:
        return self.call("getrollout", [target])

    def estimate_bid(self, target: int) -> int:
        result = self.call("estimatebid", [target])
        if isinstance(result, bool) or not isinstance(result, int):
            raise RPCDecodeError(f"Parse error: estimatebid returned {result!r}, expected sats")
        return result

    def get_space(self, space_hash: str) -> Any:
        return self.call("getspace", [space_hash])

    def get_spaceout(self, outpoint: str) -> Any:
        return self.call("getspaceout", [parse_outpoint(outpoint)])

    # Wallet ---------------------------------------------------------------

    def wallet_create(self, wallet: str) -> Any:
        return self.call("walletcreate", [wallet])

    def wallet_load(self, wallet: str) -> Any:
        return self.call("walletload", [wallet])

    def wallet_import(self, document: Dict[str, Any]) -> Any:
        return self.call("walletimport", [document])

    def wallet_export(self, wallet: str) -> Dict[str, Any]:
        result = self.call("walletexport", [wallet])
        if not isinstance(result, dict):
            raise RPCDecodeError("Parse error: walletexport did not return a wallet document")
        return result

    def wallet_get_info(self, wallet: str) -> Dict[str, Any]:
        return self.call("walletgetinfo", [wallet])

    def wallet_get_balance(self, wallet: str) -> Any:
        return self.call("walletgetbalance", [wallet])

    def wallet_list_transactions(self, wallet: str, count: int, skip: int) -> list[Any]:
        return self.call("walletlisttransactions", [wallet, count, skip])

    def wallet_list_spaces(self, wallet: str) -> Any:
        return self.call("walletlistspaces", [wallet])

    def wallet_list_bidouts(self, wallet: str) -> Any:
        return self.call("walletlistbidouts", [wallet])

    def wallet_list_unspent(self, wallet: str) -> Any:
        return self.call("walletlistunspent", [wallet])

    def wallet_get_new_address(self, wallet: str, kind: str) -> str:
        if kind not in ADDRESS_KINDS:
            raise LocalValidationError(f"Unknown address kind: {kind}")
        result = self.call("walletgetnewaddress", [wallet, kind])
        if not isinstance(result, str):
            raise RPCDecodeError("Parse error: walletgetnewaddress did not return an address")
        return result

    def wallet_bump_fee(
        self, wallet: str, txid: str, fee_rate: int | str, skip_tx_check: bool
    ) -> Any:
        rate = sat_vb_to_sat_kwu(parse_fee_rate(fee_rate))
        return self.call("walletbumpfee", [wallet, parse_txid(txid), rate, skip_tx_check])

    def wallet_force_spend(self, wallet: str, outpoint: str, fee_rate: int | str) -> Any:
        rate = sat_vb_to_sat_kwu(parse_fee_rate(fee_rate))
        return self.call("walletforcespend", [wallet, parse_outpoint(outpoint), rate])

    def wallet_send_request(self, wallet: str, request: Dict[str, Any]) -> Any:
        return self.call("walletsendrequest", [wallet, request])
