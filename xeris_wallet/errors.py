"""Wallet error taxonomy.

Every failure a command can hit is one of the classes below. Each carries the
context needed to act on it and the process exit code the CLI should return.
"""

from __future__ import annotations

from decimal import Decimal

from .constants import CURRENCY, EXIT_FAILURE, EXIT_USAGE
from .units import format_xrs


class WalletError(Exception):
    """Base class for errors reported by the wallet CLI."""

    exit_code = EXIT_FAILURE


class KeyFileError(WalletError):
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Unable to load key file {path}: {reason}")


class InvalidAddressError(WalletError):
    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"Invalid address: {address!r}")


class InsufficientBalanceError(WalletError):
    def __init__(self, balance: int, required: int | Decimal) -> None:
        self.balance = balance
        self.required = required
        super().__init__(
            f"Insufficient local balance: {format_xrs(balance)} {CURRENCY} "
            f"(amount plus fee is {format_xrs(required)} {CURRENCY})"
        )


class ConfirmationError(WalletError):
    def __init__(self, signature: str | None, reason: str) -> None:
        self.signature = signature
        self.reason = reason
        if signature:
            super().__init__(f"Transaction {signature} failed: {reason}")
        else:
            super().__init__(f"Transaction rejected: {reason}")


class ProgramInvocationError(WalletError):
    def __init__(self, program_id: str, method: str, code: int | str | None, message: str) -> None:
        self.program_id = program_id
        self.method = method
        self.code = code
        self.message = message
        detail = f"program error {code}: {message}" if code is not None else message
        super().__init__(f"{method} on program {program_id} failed: {detail}")


class AirdropError(WalletError):
    def __init__(self, address: str, message: str) -> None:
        self.address = address
        self.message = message
        super().__init__(f"Local Airdrop failed for {address}: {message}")


class RpcConnectionError(WalletError):
    """The node endpoint could not be reached."""

    def __init__(self, endpoint: str, reason: str) -> None:
        self.endpoint = endpoint
        self.reason = reason
        super().__init__(f"Cannot reach node at {endpoint}: {reason}")


class RequestTimeoutError(WalletError):
    """A bounded wait (confirmation or HTTP call) ran out."""

    def __init__(self, operation: str, seconds: float) -> None:
        self.operation = operation
        self.seconds = seconds
        super().__init__(f"Timed out after {seconds:g}s waiting for {operation}")


class OperationNotImplementedError(WalletError):
    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(f"'{command}' is not implemented yet")


class ArgumentError(WalletError):
    exit_code = EXIT_USAGE

    def __init__(self, command: str, reason: str) -> None:
        self.command = command
        self.reason = reason
        super().__init__(f"{command}: {reason}")


class ConfigError(WalletError):
    exit_code = EXIT_USAGE

    def __init__(self, path: str | None, reason: str) -> None:
        self.path = path
        self.reason = reason
        if path:
            super().__init__(f"Invalid config {path}: {reason}")
        else:
            super().__init__(f"Invalid config: {reason}")
