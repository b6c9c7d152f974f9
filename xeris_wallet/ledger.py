"""Ledger access: the SDK RPC client plus the node's HTTP faucet."""

from __future__ import annotations

import http.client
import json
import logging
import re
import socket
import time
import urllib.error
import urllib.request
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Sequence

import httpx
from anchorpy import Context
from anchorpy_core.idl import Idl
from solana.exceptions import SolanaRpcException
from solana.rpc.api import Client
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction
from solders.transaction_status import TransactionConfirmationStatus

from .config import WalletConfig
from .errors import (
    AirdropError,
    ConfirmationError,
    ProgramInvocationError,
    RequestTimeoutError,
    RpcConnectionError,
)
from .idl import build_program, idl_errors, instruction_args

logger = logging.getLogger(__name__)

_CUSTOM_ERROR_RES = (
    re.compile(r"custom program error: 0x([0-9a-fA-F]+)"),
    re.compile(r"Custom\((\d+)\)"),
    re.compile(r"Error Number: (\d+)"),
)

# Built-in instruction errors, matched in both the enum and the node message form.
_BUILTIN_ERROR_RES = (
    ("InsufficientFunds", re.compile(r"\bInsufficientFunds\b|insufficient funds for instruction")),
    ("InvalidArgument", re.compile(r"\bInvalidArgument\b|invalid program argument")),
    ("ArithmeticOverflow", re.compile(r"\bArithmeticOverflow\b|Program arithmetic overflowed")),
)

_STATUS_NAMES = (
    (TransactionConfirmationStatus.Processed, "processed"),
    (TransactionConfirmationStatus.Confirmed, "confirmed"),
    (TransactionConfirmationStatus.Finalized, "finalized"),
)


def commitment_satisfied(status: str | None, commitment: str) -> bool:
    if commitment == "processed":
        return status in {"processed", "confirmed", "finalized"}
    if commitment == "confirmed":
        return status in {"confirmed", "finalized"}
    return status == "finalized"


def _status_name(status: Any) -> str | None:
    for member, name in _STATUS_NAMES:
        if status == member:
            return name
    return None


def _rpc_error_message(exc: RPCException) -> str:
    err = exc.args[0] if exc.args else exc
    message = getattr(err, "message", None)
    return str(message) if message else str(err)


def _program_error_code(*texts: str) -> int | str | None:
    """Custom error number if the program raised one, else the built-in error name."""
    for text in texts:
        for idx, pattern in enumerate(_CUSTOM_ERROR_RES):
            match = pattern.search(text)
            if match:
                return int(match.group(1), 16 if idx == 0 else 10)
    for text in texts:
        for name, pattern in _BUILTIN_ERROR_RES:
            if pattern.search(text):
                return name
    return None


def _rpc_error_texts(exc: RPCException) -> list[str]:
    err = exc.args[0] if exc.args else exc
    texts = [_rpc_error_message(exc)]
    data = getattr(err, "data", None)
    if data is not None:
        tx_err = getattr(data, "err", None)
        if tx_err is not None:
            texts.append(str(tx_err))
        logs = getattr(data, "logs", None)
        if logs:
            texts.extend(str(line) for line in logs)
    return texts


def _airdrop_failure(payload: Any) -> str | None:
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    # The alpha node answers with a bare JSON string in both outcomes.
    if isinstance(payload, str) and "failed" in payload.lower():
        return payload
    return None


class LedgerClient:
    """Capability wrapper over the local node.

    Every call is a single request; nothing here retries. Transport failures
    become ``RpcConnectionError`` and bounded waits ``RequestTimeoutError``.
    """

    def __init__(self, config: WalletConfig, client: Client | None = None) -> None:
        self.config = config
        self._client = client

    @property
    def commitment(self) -> Commitment:
        return Commitment(self.config.commitment)

    def connect(self) -> "LedgerClient":
        # Local alpha: no version handshake against the node.
        if self._client is None:
            self._client = Client(
                self.config.rpc_url,
                commitment=self.commitment,
                timeout=self.config.http_timeout,
            )
        logger.info("Connected to Local Alpha Node at %s", self.config.rpc_url)
        return self

    def _require_client(self) -> Client:
        if self._client is None:
            self.connect()
        return self._client  # type: ignore[return-value]

    @contextmanager
    def _rpc_call(self, method: str) -> Iterator[None]:
        try:
            yield
        except SolanaRpcException as exc:
            cause = exc.__cause__
            if isinstance(cause, httpx.TimeoutException):
                raise RequestTimeoutError(f"{method} response", self.config.http_timeout) from exc
            raise RpcConnectionError(self.config.rpc_url, str(cause or exc)) from exc
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(f"{method} response", self.config.http_timeout) from exc
        except httpx.HTTPError as exc:
            raise RpcConnectionError(self.config.rpc_url, str(exc)) from exc

    def _value(self, resp: Any, method: str) -> Any:
        if not hasattr(resp, "value"):
            raise RpcConnectionError(self.config.rpc_url, f"{method} returned an error: {resp}")
        return resp.value

    def get_balance(self, address: Pubkey) -> int:
        client = self._require_client()
        with self._rpc_call("getBalance"):
            resp = client.get_balance(address, commitment=self.commitment)
        balance = int(self._value(resp, "getBalance"))
        logger.debug("Balance of %s: %d", address, balance)
        return balance

    def _send(self, instructions: Sequence[Instruction], signers: Sequence[Keypair]) -> Signature:
        if not signers:
            raise ValueError("at least one signer is required")
        client = self._require_client()
        with self._rpc_call("getLatestBlockhash"):
            resp = client.get_latest_blockhash(self.commitment)
        blockhash = self._value(resp, "getLatestBlockhash").blockhash

        tx = Transaction.new_with_payer(list(instructions), signers[0].pubkey())
        tx.sign(list(signers), blockhash)
        with self._rpc_call("sendTransaction"):
            resp = client.send_raw_transaction(
                bytes(tx),
                opts=TxOpts(skip_preflight=False, preflight_commitment=self.commitment),
            )
        signature = self._value(resp, "sendTransaction")
        logger.info("Submitted transaction %s", signature)
        return signature

    def submit_transaction(
        self, instructions: Sequence[Instruction], signers: Sequence[Keypair]
    ) -> Signature:
        try:
            return self._send(instructions, signers)
        except RPCException as exc:
            raise ConfirmationError(None, _rpc_error_message(exc)) from exc

    def confirm_transaction(self, signature: Signature) -> None:
        client = self._require_client()
        commitment = self.config.commitment
        deadline = time.monotonic() + self.config.confirm_timeout
        while True:
            with self._rpc_call("getSignatureStatuses"):
                resp = client.get_signature_statuses([signature], search_transaction_history=True)
            statuses = self._value(resp, "getSignatureStatuses") or []
            status = statuses[0] if statuses else None
            if status is not None:
                if status.err is not None:
                    raise ConfirmationError(str(signature), str(status.err))
                name = _status_name(status.confirmation_status) or "finalized"
                if commitment_satisfied(name, commitment):
                    logger.info("Transaction %s reached %s", signature, name)
                    return
            if time.monotonic() >= deadline:
                raise RequestTimeoutError(
                    f"transaction {signature} to reach {commitment} commitment",
                    self.config.confirm_timeout,
                )
            logger.debug("Waiting for %s (%s)", signature, commitment)
            time.sleep(self.config.poll_interval)

    @staticmethod
    def derive_program_address(seeds: Sequence[bytes], program_id: Pubkey) -> tuple[Pubkey, int]:
        return Pubkey.find_program_address(list(seeds), program_id)

    def invoke_program(
        self,
        idl: Idl,
        program_id: Pubkey,
        method: str,
        accounts: Mapping[str, Pubkey],
        args: Mapping[str, Any],
        signers: Sequence[Keypair],
        error_messages: Mapping[int | str, str] | None = None,
    ) -> Signature:
        """Build ``method`` through anchorpy, then submit and confirm it.

        ``error_messages`` explains built-in program errors by name; custom
        error numbers are explained by the IDL's own error table.
        """
        if not signers:
            raise ValueError("at least one signer is required")
        ordered = instruction_args(idl, method, args, accounts)
        connection = AsyncClient(self.config.rpc_url, commitment=self.commitment)
        program = build_program(idl, program_id, connection, signers[0])
        ix = program.instruction[method](*ordered, ctx=Context(accounts=dict(accounts)))
        messages: dict[int | str, str] = {**idl_errors(idl), **(error_messages or {})}

        def failure(code: int | str | None, message: str) -> ProgramInvocationError:
            if code is not None:
                message = messages.get(code, message)
            return ProgramInvocationError(str(program_id), method, code, message)

        try:
            signature = self._send([ix], signers)
        except RPCException as exc:
            texts = _rpc_error_texts(exc)
            raise failure(_program_error_code(*texts), texts[0]) from exc
        try:
            self.confirm_transaction(signature)
        except ConfirmationError as exc:
            raise failure(_program_error_code(exc.reason), exc.reason) from exc
        return signature

    def request_airdrop(self, address: str, amount: int) -> Any:
        base = self.config.faucet_base
        timeout = self.config.http_timeout
        url = f"{base}/airdrop/{address}/{amount}"
        req = urllib.request.Request(url, data=b"", method="POST")
        logger.info("Requesting airdrop of %d base units to %s", amount, address)
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                body = resp.read().decode()
        except urllib.error.HTTPError as exc:
            text = exc.read().decode(errors="replace")
            try:
                detail = _airdrop_failure(json.loads(text))
            except json.JSONDecodeError:
                detail = None
            raise AirdropError(address, detail or f"HTTP {exc.code}: {exc.reason}") from exc
        except urllib.error.URLError as exc:
            if isinstance(exc.reason, socket.timeout):
                raise RequestTimeoutError("airdrop response", timeout) from exc
            raise RpcConnectionError(base, str(exc.reason)) from exc
        except socket.timeout as exc:
            raise RequestTimeoutError("airdrop response", timeout) from exc
        except (http.client.HTTPException, OSError) as exc:
            raise RpcConnectionError(base, str(exc) or type(exc).__name__) from exc

        try:
            payload = json.loads(body)
        except json.JSONDecodeError as exc:
            raise AirdropError(address, f"unexpected response: {body[:200]!r}") from exc
        failure = _airdrop_failure(payload)
        if failure:
            raise AirdropError(address, failure)
        logger.debug("Airdrop response: %s", payload)
        return payload
