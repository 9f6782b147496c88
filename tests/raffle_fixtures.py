"""Shared builders for the raffle tests."""
from __future__ import annotations

import base58

from solana_raffle.funds import Treasury
from solana_raffle.ledger import RaffleLedger
from solana_raffle.randomness import DrawOutcome, RandomSource


def account(n: int) -> str:
    """A valid, distinct 32-byte address for every n in 1..255."""
    return base58.b58encode(bytes([n]) * 32).decode("ascii")


class FakeClock:
    def __init__(self, now: int = 1_700_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


class FixedRandomSource(RandomSource):
    """Pins the winner slot and rarity roll."""

    seed_source = "fixed"

    def __init__(self, winner_index: int = 0, rarity_roll: int = 0) -> None:
        self.winner_index = winner_index
        self.rarity_roll = rarity_roll
        self.calls = []

    def environment_seed(self) -> str:
        return "fixed-seed"

    def draw(self, caller, timestamp, slot_count):
        self.calls.append((caller, timestamp, slot_count))
        return DrawOutcome(
            winner_index=self.winner_index,
            rarity_roll=self.rarity_roll,
            seed=self.environment_seed(),
            index_hash_hex="00",
            rarity_hash_hex="00",
        )


FEE_ACCOUNT = account(200)
OWNER = account(201)
DURATION = 3600


def make_ledger(entry_fee=10, source=None, clock=None, **kwargs):
    treasury = kwargs.pop("treasury", None) or Treasury()
    ledger = RaffleLedger(
        entry_fee,
        FEE_ACCOUNT,
        DURATION,
        treasury=treasury,
        random_source=source or FixedRandomSource(),
        owner=kwargs.pop("owner", OWNER),
        clock=clock or FakeClock(),
        **kwargs,
    )
    return ledger, treasury


def fund_and_enter(ledger, treasury, *ns):
    """Each account(n) pays for and enters its own slot."""
    for n in ns:
        who = account(n)
        treasury.deposit(who, ledger.entry_fee)
        ledger.enter(who, [who], ledger.entry_fee)
