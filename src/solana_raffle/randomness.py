"""
Where the draw's unpredictability comes from.

The default sources hash the caller, the draw time and an environment seed
(a recent blockhash). This is WEAK randomness: whoever calls draw_winner can
see the seed and choose when to call. Deployments that need fairness should
subclass RandomSource and back `draw` with a verifiable randomness provider.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .draw import compute_rarity_roll, compute_winner_index
from .rpc import RpcClient, load_seed_from_block_feed_file

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DrawOutcome:
    winner_index: int
    rarity_roll: int
    seed: str
    index_hash_hex: str
    rarity_hash_hex: str


class RandomSource:
    """Produces the winner index and rarity roll for one draw."""

    seed_source = "unknown"

    def environment_seed(self) -> str:
        raise NotImplementedError

    def draw(self, caller: str, timestamp: int, slot_count: int) -> DrawOutcome:
        # One seed per draw; both rolls must see the same value.
        seed = self.environment_seed()
        index, index_hash = compute_winner_index(caller, timestamp, seed, slot_count)
        roll, roll_hash = compute_rarity_roll(caller, seed)
        log.debug("Seed %s (%s) -> index %d, rarity roll %d", seed, self.seed_source, index, roll)
        return DrawOutcome(
            winner_index=index,
            rarity_roll=roll,
            seed=seed,
            index_hash_hex=index_hash,
            rarity_hash_hex=roll_hash,
        )


class StaticRandomSource(RandomSource):
    seed_source = "static"

    def __init__(self, seed: str) -> None:
        self.seed = seed

    def environment_seed(self) -> str:
        return self.seed


class BlockhashRandomSource(RandomSource):
    """Seeds from the latest finalized blockhash, or a fixed slot's."""

    def __init__(self, rpc: RpcClient, slot: Optional[int] = None) -> None:
        self.rpc = rpc
        self.slot = slot
        self.seed_source = "rpc:getBlock" if slot is not None else "rpc:getLatestBlockhash"

    def environment_seed(self) -> str:
        if self.slot is not None:
            return self.rpc.get_blockhash_for_slot(self.slot)
        return self.rpc.get_latest_blockhash()


class BlockFeedRandomSource(RandomSource):
    def __init__(self, path: str, slot_hint: Optional[int] = None) -> None:
        self.path = path
        self.slot_hint = slot_hint
        self.seed_source = f"file:{path}"

    def environment_seed(self) -> str:
        return load_seed_from_block_feed_file(self.path, slot_hint=self.slot_hint)
