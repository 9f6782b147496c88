from __future__ import annotations

import hashlib
from typing import List

import base58

from .errors import InvalidIdentity

PUBKEY_LENGTH = 32

# 32 zero bytes; stands in for a refunded slot in the legacy participant view
NULL_ACCOUNT = base58.b58encode(bytes(PUBKEY_LENGTH)).decode("ascii")


def decode_identity(identity: str) -> bytes:
    """
    Identities are base58 account addresses (32-byte public keys),
    the same shape as token account owners on chain.
    """
    if not isinstance(identity, str) or not identity:
        raise InvalidIdentity(identity, "expected a base58 string")
    try:
        raw = base58.b58decode(identity)
    except ValueError as e:
        raise InvalidIdentity(identity, f"not base58 ({e})")
    if len(raw) != PUBKEY_LENGTH:
        raise InvalidIdentity(identity, f"decodes to {len(raw)} bytes, expected 32")
    return raw


def validate_identity(identity: str, allow_null: bool = False) -> str:
    decode_identity(identity)
    if not allow_null and identity == NULL_ACCOUNT:
        raise InvalidIdentity(identity, "the null account cannot hold a slot")
    return identity


def derive_identity(label: str) -> str:
    """Deterministic address for a label (ledger accounts, fixtures)."""
    digest = hashlib.sha256(label.encode("utf-8")).digest()
    return base58.b58encode(digest).decode("ascii")


def load_identities(path: str | None) -> List[str]:
    """One address per line; blank lines and '#' comments skipped, order kept."""
    if not path:
        return []
    out: List[str] = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            w = line.strip()
            if not w or w.startswith("#"):
                continue
            out.append(validate_identity(w))
    return out
