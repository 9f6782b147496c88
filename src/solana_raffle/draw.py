from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Tuple

from .collectibles import Rarity
from .project_constants import (
    FEE_PERCENT,
    LAMPORT_DECIMALS,
    PRIZE_POOL_PERCENT,
    RARITY_ROLL_MODULUS,
)

COMMON_CEILING = int(Rarity.COMMON)
RARE_CEILING = int(Rarity.COMMON) + int(Rarity.RARE)


@dataclass(frozen=True)
class PotSplit:
    total: int
    prize: int
    fee: int
    leaked: int  # truncation remainder, neither paid out nor accrued


def to_sol(raw_amount: int) -> float:
    return round(raw_amount / (10**LAMPORT_DECIMALS), 4)


def hash_parts(*parts: object) -> Tuple[int, str]:
    """SHA-256 over the ':'-joined parts; returns (int, hex)."""
    material = ":".join(str(p) for p in parts)
    digest_hex = hashlib.sha256(material.encode("utf-8")).hexdigest()
    return int(digest_hex, 16), digest_hex


def compute_winner_index(
    caller: str, timestamp: int, seed: str, slot_count: int
) -> Tuple[int, str]:
    # Weak: the caller picks the timestamp window and sees the seed in advance.
    if slot_count <= 0:
        raise RuntimeError("Cannot pick a winner from an empty registry.")
    value, digest_hex = hash_parts(caller, timestamp, seed)
    return value % slot_count, digest_hex


def compute_rarity_roll(caller: str, seed: str) -> Tuple[int, str]:
    value, digest_hex = hash_parts(caller, seed)
    return value % RARITY_ROLL_MODULUS, digest_hex


def rarity_for_roll(roll: int) -> Rarity:
    if roll <= COMMON_CEILING:
        return Rarity.COMMON
    if roll <= RARE_CEILING:
        return Rarity.RARE
    return Rarity.LEGENDARY


def split_pot(total: int) -> PotSplit:
    prize = (total * PRIZE_POOL_PERCENT) // 100
    fee = (total * FEE_PERCENT) // 100
    return PotSplit(total=total, prize=prize, fee=fee, leaked=total - prize - fee)
