"""CLI entrypoint for the XerisCoin local wallet."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Sequence

from .config import WalletConfig, resolve_config
from .constants import ALLOWED_COMMITMENTS, EXIT_FAILURE, EXIT_OK
from .errors import ArgumentError, WalletError
from .ledger import LedgerClient
from .operations import (
    claim_airdrop,
    send_xrs,
    show_balance,
    stake_program,
    stake_xrs,
    unstake_xrs,
)
from .units import parse_amount, to_base_units

USAGE = (
    "Local Alpha Usage: xeris-wallet [options] <command> <args>\n"
    "Commands: send <keypath> <to> <amt> | stake <keypath> <amt> | "
    "unstake <keypath> <amt> | airdrop <addr> | balance <addr>"
)


def _amount(command: str, value: str) -> Decimal:
    try:
        amount = parse_amount(value)
        to_base_units(amount)
    except ValueError as exc:
        raise ArgumentError(command, str(exc)) from exc
    return amount


def _connect(config: WalletConfig) -> LedgerClient:
    return LedgerClient(config).connect()


def _cmd_send(params: Sequence[str], config: WalletConfig) -> int:
    key_path, to_address, raw_amount = params
    amount = _amount("send", raw_amount)
    result = send_xrs(_connect(config), key_path, to_address, amount)
    print(result.summary())
    return EXIT_OK


def _cmd_stake(params: Sequence[str], config: WalletConfig) -> int:
    key_path, raw_amount = params
    amount = _amount("stake", raw_amount)
    idl, program_id = stake_program(config)
    result = stake_xrs(_connect(config), idl, program_id, key_path, amount)
    print(result.summary())
    return EXIT_OK


def _cmd_unstake(params: Sequence[str], config: WalletConfig) -> int:
    key_path, raw_amount = params
    unstake_xrs(key_path, _amount("unstake", raw_amount))
    return EXIT_OK


def _cmd_airdrop(params: Sequence[str], config: WalletConfig) -> int:
    (address,) = params
    result = claim_airdrop(_connect(config), address)
    print(result.summary())
    return EXIT_OK


def _cmd_balance(params: Sequence[str], config: WalletConfig) -> int:
    (address,) = params
    result = show_balance(_connect(config), address)
    print(result.summary())
    return EXIT_OK


@dataclass(frozen=True)
class Command:
    name: str
    params: tuple[str, ...]
    func: Callable[[Sequence[str], WalletConfig], int]

    @property
    def usage(self) -> str:
        return " ".join([self.name, *(f"<{p}>" for p in self.params)])


COMMANDS: dict[str, Command] = {
    cmd.name: cmd
    for cmd in (
        Command("send", ("keypath", "to", "amount"), _cmd_send),
        Command("stake", ("keypath", "amount"), _cmd_stake),
        Command("unstake", ("keypath", "amount"), _cmd_unstake),
        Command("airdrop", ("address",), _cmd_airdrop),
        Command("balance", ("address",), _cmd_balance),
    )
}


def dispatch(command: str | None, params: Sequence[str], config: WalletConfig) -> int:
    """Route one command. Unknown or missing commands print usage and succeed."""
    cmd = COMMANDS.get(command or "")
    if cmd is None:
        print(USAGE)
        return EXIT_OK
    if len(params) < len(cmd.params):
        raise ArgumentError(command, f"missing arguments; usage: {cmd.usage}")
    if len(params) > len(cmd.params):
        raise ArgumentError(command, f"unexpected arguments {list(params[len(cmd.params):])}; usage: {cmd.usage}")
    return cmd.func(list(params), config)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xeris-wallet",
        description="XerisCoin local wallet (connects to the local alpha node).",
        epilog=USAGE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--rpc-url", help="Node RPC URL override")
    parser.add_argument("--faucet-url", help="Airdrop endpoint base URL (default: RPC URL)")
    parser.add_argument("--commitment", choices=ALLOWED_COMMITMENTS, help="Confirmation level")
    parser.add_argument("--confirm-timeout", type=float, help="Seconds to wait for confirmation")
    parser.add_argument("--stake-program-id", help="Deployed stake program id")
    parser.add_argument("-c", "--config", dest="config_path", help="Wallet config file (TOML)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    parser.add_argument("command", nargs="?", help=argparse.SUPPRESS)
    parser.add_argument("params", nargs=argparse.REMAINDER, help=argparse.SUPPRESS)
    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    if args.command not in COMMANDS:
        print(USAGE)
        return EXIT_OK
    try:
        config = resolve_config(
            args.config_path,
            overrides={
                "rpc_url": args.rpc_url,
                "faucet_url": args.faucet_url,
                "commitment": args.commitment,
                "confirm_timeout": args.confirm_timeout,
                "stake_program_id": args.stake_program_id,
            },
        )
        return dispatch(args.command, args.params, config)
    except WalletError as exc:
        print(str(exc))
        return exc.exit_code
    except ValueError as exc:
        print(str(exc))
        return EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
