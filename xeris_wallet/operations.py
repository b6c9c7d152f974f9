"""Wallet commands: send, stake, unstake, airdrop, balance."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import NoReturn

from anchorpy_core.idl import Idl
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.system_program import TransferParams, transfer

from .config import WalletConfig
from .constants import AIRDROP_LAMPORTS, CURRENCY, STAKE_METHOD, STAKE_SEED
from .errors import ConfigError, InsufficientBalanceError, OperationNotImplementedError
from .idl import idl_address, load_idl
from .keys import load_identity, parse_address
from .ledger import LedgerClient
from .units import format_xrs, to_base_units, transfer_fee

logger = logging.getLogger(__name__)

# The stake program raises built-in errors rather than custom codes.
STAKE_ERRORS = {
    "InsufficientFunds": "stake amount is below the 1,000 XRS minimum",
    "InvalidArgument": "stake would exceed 10% of the total stake",
    "ArithmeticOverflow": "staked amount would overflow",
}


@dataclass(frozen=True)
class TransferResult:
    lamports: int
    fee: Decimal
    recipient: str
    signature: str

    def summary(self) -> str:
        return (
            f"Local Send: {format_xrs(self.lamports)} {CURRENCY} to {self.recipient}. "
            f"Fee: {format_xrs(self.fee)} {CURRENCY}. Sig: {self.signature}"
        )


@dataclass(frozen=True)
class StakeResult:
    lamports: int
    stake_account: str
    bump: int
    signature: str

    def summary(self) -> str:
        return (
            f"Local Stake: {format_xrs(self.lamports)} {CURRENCY} to stake account "
            f"{self.stake_account}. Sig: {self.signature}"
        )


@dataclass(frozen=True)
class AirdropResult:
    address: str
    lamports: int

    def summary(self) -> str:
        return f"Local Airdrop Claimed: {format_xrs(self.lamports)} {CURRENCY} to {self.address}"


@dataclass(frozen=True)
class BalanceResult:
    address: str
    lamports: int

    def summary(self) -> str:
        return f"Balance of {self.address}: {format_xrs(self.lamports)} {CURRENCY}"


def send_xrs(ledger: LedgerClient, key_path: str | Path, to_address: str, amount: Decimal) -> TransferResult:
    sender = load_identity(key_path)
    balance = ledger.get_balance(sender.pubkey())
    lamports = to_base_units(amount)
    fee = transfer_fee(lamports)
    if balance < lamports + fee:
        raise InsufficientBalanceError(balance, lamports + fee)

    recipient = parse_address(to_address)
    ix = transfer(
        TransferParams(
            from_pubkey=sender.pubkey(),
            to_pubkey=recipient,
            lamports=lamports,
        )
    )
    signature = ledger.submit_transaction([ix], [sender])
    ledger.confirm_transaction(signature)
    return TransferResult(lamports=lamports, fee=fee, recipient=str(recipient), signature=str(signature))


def stake_program(config: WalletConfig) -> tuple[Idl, Pubkey]:
    """Load the stake program IDL and resolve its program id.

    The bundled IDL carries no address, so the deployed program id has to come
    from configuration.
    """
    idl = load_idl(config.idl_path)
    program_id = config.stake_program_id or idl_address(idl)
    if not program_id:
        raise ConfigError(
            None,
            "no stake program id configured (set wallet.stake_program_id, "
            "XERIS_STAKE_PROGRAM_ID or --stake-program-id)",
        )
    try:
        return idl, Pubkey.from_string(program_id)
    except ValueError as exc:
        raise ConfigError(None, f"invalid stake program id {program_id!r}") from exc


def derive_stake_account(owner: Pubkey, program_id: Pubkey) -> tuple[Pubkey, int]:
    return LedgerClient.derive_program_address([STAKE_SEED, bytes(owner)], program_id)


def stake_xrs(
    ledger: LedgerClient,
    idl: Idl,
    program_id: Pubkey,
    key_path: str | Path,
    amount: Decimal,
) -> StakeResult:
    owner = load_identity(key_path)
    stake_account, bump = derive_stake_account(owner.pubkey(), program_id)
    lamports = to_base_units(amount)
    logger.debug("Stake account %s (bump %d) for %s", stake_account, bump, owner.pubkey())
    signature = ledger.invoke_program(
        idl,
        program_id,
        STAKE_METHOD,
        accounts={
            "stake_account": stake_account,
            "owner": owner.pubkey(),
            "system_program": SYSTEM_PROGRAM_ID,
        },
        args={"amount": lamports},
        signers=[owner],
        error_messages=STAKE_ERRORS,
    )
    return StakeResult(
        lamports=lamports,
        stake_account=str(stake_account),
        bump=bump,
        signature=str(signature),
    )


def unstake_xrs(key_path: str | Path, amount: Decimal) -> NoReturn:
    # The stake program exposes no withdrawal instruction yet.
    raise OperationNotImplementedError("unstake")


def claim_airdrop(ledger: LedgerClient, address: str) -> AirdropResult:
    recipient = parse_address(address)
    ledger.request_airdrop(str(recipient), AIRDROP_LAMPORTS)
    return AirdropResult(address=str(recipient), lamports=AIRDROP_LAMPORTS)


def show_balance(ledger: LedgerClient, address: str) -> BalanceResult:
    pubkey = parse_address(address)
    return BalanceResult(address=str(pubkey), lamports=ledger.get_balance(pubkey))
