"""Command line interface for the spaced wallet."""

from __future__ import annotations

"""Command-line interface for space-cli.

Each subcommand maps onto exactly one call: a transaction request through
:class:`~space_cli.tx_builder.TransactionBuilder`, a read-only query through
:class:`~space_cli.rpc_client.SpacedRPCClient`, or (for ``hashspace``) a local
computation. Failures are classified and printed as a JSON document.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Mapping, NoReturn, Sequence

from .config import ExtendedNetwork, SessionConfig, load_session_config
from .errors import LocalValidationError, ReportableError, SpaceCliError, classify_error
from .fees import parse_amount
from .model import (
    BidParams,
    ExecuteParams,
    OpenParams,
    RegisterParams,
    SendCoinsParams,
    TransferSpacesParams,
)
from .names import hash_space, normalize_space
from .rpc_client import SpacedRPCClient
from .script import create_set_fallback, decode_hex_payload
from .tx_builder import TransactionBuilder

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_BID = "1000"


class CLIError(LocalValidationError):
    """Raised when CLI arguments are invalid."""


class CLIArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors as :class:`CLIError`."""

    def error(self, message: str) -> NoReturn:
        raise CLIError(f"{self.prog}: {message}")


class SpaceCli:
    """Per-process state: the session and the clients built from it."""

    def __init__(self, session: SessionConfig, rpc: SpacedRPCClient | None = None) -> None:
        self.session = session
        self.rpc = rpc or SpacedRPCClient(session)
        self.builder = TransactionBuilder(self.rpc, session)

    @classmethod
    def configure(
        cls, args: argparse.Namespace, env: Mapping[str, str] | None = None
    ) -> "SpaceCli":
        session = load_session_config(
            config_path=args.config,
            env=env,
            overrides={
                "chain": args.chain,
                "rpc_url": args.spaced_rpc_url,
                "wallet": args.wallet,
                "dust": args.dust,
                "force": args.force,
                "skip_tx_check": args.skip_tx_check,
                "rpc_user": args.rpc_user,
                "rpc_password": args.rpc_password,
                "timeout": args.timeout,
            },
        )
        logger.debug("Using %s on %s with wallet %s", session.rpc_url, session.network, session.wallet)
        return cls(session)


def _global_options(*, suppress: bool) -> argparse.ArgumentParser:
    # Sub-parsers share these options with default=SUPPRESS so that a value given
    # before the command name is not reset by the sub-parser.
    parent = argparse.ArgumentParser(add_help=False)
    default = argparse.SUPPRESS if suppress else None
    parent.add_argument("-w", "--wallet", default=default, help="Wallet to use (default: default)")
    parent.add_argument(
        "-d", "--dust", default=default, help="Custom dust amount in sat for bid outputs"
    )
    parent.add_argument(
        "--force",
        action="store_true",
        default=argparse.SUPPRESS if suppress else False,
        help="Force invalid transaction (for testing only)",
    )
    parent.add_argument(
        "--skip-tx-check",
        action="store_true",
        default=argparse.SUPPRESS if suppress else False,
        help="Skip tx checker (not recommended)",
    )
    return parent


def _add_fee_rate(parser: argparse.ArgumentParser, *, required: bool = False) -> None:
    parser.add_argument(
        "-f", "--fee-rate", required=required, help="Fee rate to use in sat/vB"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = CLIArgumentParser(
        prog="space-cli",
        description="Command line client for the spaced wallet service",
        parents=[_global_options(suppress=False)],
    )
    parser.add_argument(
        "--chain",
        default=None,
        help="Bitcoin network to use: "
        + ", ".join(network.value for network in ExtendedNetwork)
        + " (env SPACED_CHAIN, default: mainnet)",
    )
    parser.add_argument(
        "--spaced-rpc-url",
        default=None,
        help="Spaced RPC URL (env SPACED_RPC_URL, default: based on the chain)",
    )
    parser.add_argument("--rpc-user", default=None, help="RPC username for HTTP basic auth")
    parser.add_argument("--rpc-password", default=None, help="RPC password for HTTP basic auth")
    parser.add_argument("--config", default=None, help="Path to a YAML config file")
    parser.add_argument("--timeout", default=None, help="RPC timeout in seconds (default: 30)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    shared = [_global_options(suppress=True)]
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add(name: str, help_text: str) -> argparse.ArgumentParser:
        return subparsers.add_parser(name, help=help_text, parents=shared)

    add("createwallet", "Generate a new wallet")
    add("loadwallet", "Load a wallet")
    export_parser = add("exportwallet", "Export a wallet")
    export_parser.add_argument("path", help="Destination path to export json file")
    import_parser = add("importwallet", "Import a wallet")
    import_parser.add_argument("path", help="Wallet json file to import")
    add("getwalletinfo", "Get wallet info")
    add("getserverinfo", "Get server info")

    open_parser = add("open", "Open an auction")
    open_parser.add_argument("space", help="Space name")
    open_parser.add_argument(
        "initial_bid", nargs="?", default=DEFAULT_INITIAL_BID, help="Amount in sats (default: 1000)"
    )
    _add_fee_rate(open_parser)

    bid_parser = add("bid", "Place a bid")
    bid_parser.add_argument("space", help="Space name")
    bid_parser.add_argument("amount", help="Amount in satoshi")
    _add_fee_rate(bid_parser)
    bid_parser.add_argument(
        "-c",
        "--confirmed-only",
        action="store_true",
        help="Only spend confirmed outputs",
    )

    register_parser = add("register", "Register a won auction")
    register_parser.add_argument("space", help="Space name")
    register_parser.add_argument("address", nargs="?", default=None, help="Recipient address")
    _add_fee_rate(register_parser)

    getspace_parser = add("getspace", "Get space info")
    getspace_parser.add_argument("space", help="The space name")

    transfer_parser = add(
        "transfer", "Transfer ownership of a set of spaces to the given name or address"
    )
    transfer_parser.add_argument("spaces", nargs="+", help="Spaces to send")
    transfer_parser.add_argument(
        "--to", required=True, help="Recipient space name or address (must be a space address)"
    )
    _add_fee_rate(transfer_parser)

    estimate_parser = add(
        "estimatebid",
        "Estimates the minimum bid needed for a rollout within the given target blocks",
    )
    estimate_parser.add_argument("target", nargs="?", default="0", help="Rollout within target blocks")

    send_parser = add("send", "Send the specified amount of BTC to the given name or address")
    send_parser.add_argument("amount", help="Amount to send in satoshi")
    send_parser.add_argument("--to", required=True, help="Recipient space name or address")
    _add_fee_rate(send_parser)

    add("balance", "Get wallet balance")

    bidouts_parser = add(
        "createbidouts", "Pre-create outputs that can be auctioned off during the bidding process"
    )
    bidouts_parser.add_argument(
        "pairs", help="Number of output pairs to create; each pair can be used to make a bid"
    )
    _add_fee_rate(bidouts_parser)

    bump_parser = add("bumpfee", "Bump the fee for a transaction created by this wallet")
    bump_parser.add_argument("txid", help="Transaction id")
    _add_fee_rate(bump_parser, required=True)

    spaceout_parser = add(
        "getspaceout", "Get a spaceout - a Bitcoin output relevant to the Spaces protocol"
    )
    spaceout_parser.add_argument("outpoint", help="The outpoint as <txid>:<vout>")

    rollout_parser = add("getrollout", "Get the estimated rollout batch for the specified interval")
    rollout_parser.add_argument(
        "target_interval",
        nargs="?",
        default="0",
        help="0 for the coming interval, 1 for the interval after and so on",
    )

    fallback_parser = add(
        "setrawfallback", "Associate the specified data with a given space (not recommended)"
    )
    fallback_parser.add_argument("space", help="Space name")
    fallback_parser.add_argument("data", help="Hex encoded data")
    _add_fee_rate(fallback_parser)

    list_tx_parser = add("listtransactions", "List last transactions")
    list_tx_parser.add_argument("count", nargs="?", default="10")
    list_tx_parser.add_argument("skip", nargs="?", default="0")

    add("listspaces", "List won spaces including ones still in auction with a winning bid")
    add("listbidouts", "List unspent auction outputs that can be auctioned off when bidding")
    add("listunspent", "List unspent coins owned by wallet")
    add(
        "getnewspaceaddress",
        "Get a new Bitcoin address suitable for receiving spaces and coins",
    )
    add("getnewaddress", "Get a new Bitcoin address suitable for receiving coins")

    force_spend_parser = add("forcespend", "Force spend an output owned by wallet (for testing only)")
    force_spend_parser.add_argument("outpoint", help="The outpoint as <txid>:<vout>")
    _add_fee_rate(force_spend_parser, required=True)

    hash_parser = add("hashspace", "DNS encodes the space and calculates the SHA-256 hash")
    hash_parser.add_argument("space", help="Space name")

    return parser


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


def _parse_count(raw: str, label: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise CLIError(f"Invalid {label}: {raw!r}") from exc
    if value < 0:
        raise CLIError(f"Invalid {label}: {raw!r} (must not be negative)")
    return value


def cmd_export_wallet(cli: SpaceCli, args: argparse.Namespace) -> None:
    document = cli.rpc.wallet_export(cli.session.wallet)
    try:
        Path(args.path).write_text(json.dumps(document, indent=2))
    except OSError as exc:
        raise CLIError(f"Could not save to path: {exc}") from exc


def cmd_import_wallet(cli: SpaceCli, args: argparse.Namespace) -> None:
    try:
        content = Path(args.path).read_text()
    except OSError as exc:
        raise CLIError(f"Could not read wallet file: {exc}") from exc
    try:
        document = json.loads(content)
    except ValueError as exc:
        raise CLIError(f"Invalid wallet file {args.path}: {exc}") from exc
    if not isinstance(document, dict):
        raise CLIError(f"Invalid wallet file {args.path}: expected a JSON object")
    cli.rpc.wallet_import(document)


def cmd_open(cli: SpaceCli, args: argparse.Namespace) -> None:
    operation = OpenParams(
        name=normalize_space(args.space), amount=parse_amount(args.initial_bid, "initial bid")
    )
    _print_json(cli.builder.send(operation, fee_rate=args.fee_rate))


def cmd_bid(cli: SpaceCli, args: argparse.Namespace) -> None:
    operation = BidParams(name=normalize_space(args.space), amount=parse_amount(args.amount))
    _print_json(
        cli.builder.send(operation, fee_rate=args.fee_rate, confirmed_only=args.confirmed_only)
    )


def cmd_register(cli: SpaceCli, args: argparse.Namespace) -> None:
    operation = RegisterParams(name=normalize_space(args.space), to=args.address)
    _print_json(cli.builder.send(operation, fee_rate=args.fee_rate))


def cmd_transfer(cli: SpaceCli, args: argparse.Namespace) -> None:
    operation = TransferSpacesParams(
        spaces=tuple(normalize_space(space) for space in args.spaces), to=args.to
    )
    _print_json(cli.builder.send(operation, fee_rate=args.fee_rate))


def cmd_send_coins(cli: SpaceCli, args: argparse.Namespace) -> None:
    operation = SendCoinsParams(amount=parse_amount(args.amount), to=args.to)
    _print_json(cli.builder.send(operation, fee_rate=args.fee_rate))


def cmd_create_bidouts(cli: SpaceCli, args: argparse.Namespace) -> None:
    _print_json(cli.builder.send(None, bidouts=args.pairs, fee_rate=args.fee_rate))


def cmd_set_raw_fallback(cli: SpaceCli, args: argparse.Namespace) -> None:
    space = normalize_space(args.space)
    data = decode_hex_payload(args.data)
    operation = ExecuteParams(context=(space,), space_script=create_set_fallback(data))
    _print_json(cli.builder.send(operation, fee_rate=args.fee_rate))


def cmd_estimate_bid(cli: SpaceCli, args: argparse.Namespace) -> None:
    sats = cli.rpc.estimate_bid(_parse_count(args.target, "target"))
    print(f"{sats} sat")


def cmd_get_space(cli: SpaceCli, args: argparse.Namespace) -> None:
    _print_json(cli.rpc.get_space(hash_space(args.space)))


def cmd_list_transactions(cli: SpaceCli, args: argparse.Namespace) -> None:
    count = _parse_count(args.count, "count")
    skip = _parse_count(args.skip, "skip")
    _print_json(cli.rpc.wallet_list_transactions(cli.session.wallet, count, skip))


def cmd_bump_fee(cli: SpaceCli, args: argparse.Namespace) -> None:
    _print_json(
        cli.rpc.wallet_bump_fee(
            cli.session.wallet, args.txid, args.fee_rate, cli.session.skip_tx_check
        )
    )


def cmd_hash_space(args: argparse.Namespace) -> None:
    print(hash_space(args.space))


def dispatch(cli: SpaceCli, args: argparse.Namespace) -> None:
    wallet = cli.session.wallet
    if args.command == "createwallet":
        cli.rpc.wallet_create(wallet)
    elif args.command == "loadwallet":
        cli.rpc.wallet_load(wallet)
    elif args.command == "exportwallet":
        cmd_export_wallet(cli, args)
    elif args.command == "importwallet":
        cmd_import_wallet(cli, args)
    elif args.command == "getwalletinfo":
        _print_json(cli.rpc.wallet_get_info(wallet))
    elif args.command == "getserverinfo":
        _print_json(cli.rpc.get_server_info())
    elif args.command == "open":
        cmd_open(cli, args)
    elif args.command == "bid":
        cmd_bid(cli, args)
    elif args.command == "register":
        cmd_register(cli, args)
    elif args.command == "getspace":
        cmd_get_space(cli, args)
    elif args.command == "transfer":
        cmd_transfer(cli, args)
    elif args.command == "estimatebid":
        cmd_estimate_bid(cli, args)
    elif args.command == "send":
        cmd_send_coins(cli, args)
    elif args.command == "balance":
        _print_json(cli.rpc.wallet_get_balance(wallet))
    elif args.command == "createbidouts":
        cmd_create_bidouts(cli, args)
    elif args.command == "bumpfee":
        cmd_bump_fee(cli, args)
    elif args.command == "getspaceout":
        _print_json(cli.rpc.get_spaceout(args.outpoint))
    elif args.command == "getrollout":
        _print_json(cli.rpc.get_rollout(_parse_count(args.target_interval, "target interval")))
    elif args.command == "setrawfallback":
        cmd_set_raw_fallback(cli, args)
    elif args.command == "listtransactions":
        cmd_list_transactions(cli, args)
    elif args.command == "listspaces":
        _print_json(cli.rpc.wallet_list_spaces(wallet))
    elif args.command == "listbidouts":
        _print_json(cli.rpc.wallet_list_bidouts(wallet))
    elif args.command == "listunspent":
        _print_json(cli.rpc.wallet_list_unspent(wallet))
    elif args.command == "getnewspaceaddress":
        print(cli.rpc.wallet_get_new_address(wallet, "space"))
    elif args.command == "getnewaddress":
        print(cli.rpc.wallet_get_new_address(wallet, "coin"))
    elif args.command == "forcespend":
        _print_json(cli.rpc.wallet_force_spend(wallet, args.outpoint, args.fee_rate))
    else:  # pragma: no cover - argparse enforces choices; hashspace is handled in run()
        raise CLIError(f"Unknown command: {args.command}")


def run(argv: Sequence[str] | None = None, env: Mapping[str, str] | None = None) -> ReportableError | None:
    """Parse *argv*, execute one command and return the failure report, if any."""

    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except CLIError as exc:
        return classify_error(exc)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    try:
        if args.command == "hashspace":
            cmd_hash_space(args)
        else:
            dispatch(SpaceCli.configure(args, env=env), args)
    except SpaceCliError as exc:
        report = classify_error(exc)
        logger.debug("Command %s failed: %s", args.command, report.category.value)
        return report
    return None


def main(argv: Sequence[str] | None = None) -> None:
    try:
        report = run(argv)
    except KeyboardInterrupt:  # pragma: no cover - interactive use
        logger.info("Interrupted by user")
        sys.exit(130)
    if report is not None:
        print(report.render())
        sys.exit(1)


if __name__ == "__main__":
    main(sys.argv[1:])
