"""Key file loading and address parsing."""

from __future__ import annotations

import json
from pathlib import Path

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .errors import InvalidAddressError, KeyFileError

SECRET_KEY_LENGTH = 64


def load_identity(path: str | Path) -> Keypair:
    """Load a signing keypair from a JSON array of secret-key bytes."""
    resolved = Path(path).expanduser()
    try:
        raw = json.loads(resolved.read_text())
    except FileNotFoundError as exc:
        raise KeyFileError(str(path), "file not found") from exc
    except OSError as exc:
        raise KeyFileError(str(path), exc.strerror or str(exc)) from exc
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise KeyFileError(str(path), f"not valid JSON ({exc})") from exc

    if not isinstance(raw, list) or not all(
        isinstance(b, int) and not isinstance(b, bool) and 0 <= b <= 255 for b in raw
    ):
        raise KeyFileError(str(path), "expected a JSON array of byte values")
    if len(raw) != SECRET_KEY_LENGTH:
        raise KeyFileError(
            str(path), f"expected {SECRET_KEY_LENGTH} key bytes, found {len(raw)}"
        )
    try:
        return Keypair.from_bytes(bytes(raw))
    except ValueError as exc:
        raise KeyFileError(str(path), f"invalid secret key ({exc})") from exc


def parse_address(value: str) -> Pubkey:
    try:
        return Pubkey.from_string(value.strip())
    except ValueError as exc:
        raise InvalidAddressError(value) from exc
