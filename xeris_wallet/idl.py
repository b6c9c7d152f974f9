"""Stake program IDL loading on top of anchorpy."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from anchorpy import Program, Provider, Wallet
from anchorpy_core.idl import Idl
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .errors import ConfigError


def load_idl(path: str | Path) -> Idl:
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8-sig")
        json.loads(raw)
    except FileNotFoundError as exc:
        raise ConfigError(str(path), "IDL file not found") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(str(path), f"unreadable IDL ({exc})") from exc
    try:
        return Idl.from_json(raw)
    except ValueError as exc:
        raise ConfigError(str(path), f"malformed IDL ({exc})") from exc


def idl_address(idl: Idl) -> Optional[str]:
    metadata = idl.metadata
    if isinstance(metadata, dict):
        return metadata.get("address")
    return getattr(metadata, "address", None)


def idl_errors(idl: Idl) -> Dict[int, str]:
    return {err.code: err.msg or err.name for err in (idl.errors or [])}


def build_program(idl: Idl, program_id: Pubkey, connection: Any, payer: Keypair) -> Program:
    return Program(idl, program_id, Provider(connection, Wallet(payer)))


def instruction_args(idl: Idl, method: str, args: Mapping[str, Any], accounts: Mapping[str, Any]) -> List[Any]:
    """Order ``args`` the way the IDL declares them, checking nothing is missing."""
    for ix in idl.instructions:
        if ix.name == method:
            break
    else:
        raise ValueError(f"Program {idl.name} has no instruction '{method}'")
    for account in ix.accounts:
        if account.name not in accounts:
            raise ValueError(f"{method}: missing account '{account.name}'")
    ordered = []
    for field in ix.args:
        if field.name not in args:
            raise ValueError(f"{method}: missing argument '{field.name}'")
        ordered.append(args[field.name])
    return ordered
