from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from .collectibles import CollectibleRegistry, Rarity
from .draw import rarity_for_roll, split_pot
from .errors import (
    ActiveRoundFundsOutstanding,
    AlreadyRefunded,
    DuplicateParticipant,
    FeeOverflow,
    FeeTransferFailed,
    IndexOutOfRange,
    InsufficientFunds,
    InsufficientParticipants,
    InsufficientPayment,
    NotEntrant,
    NotOwner,
    PrizeTransferFailed,
    ReentrantCall,
    RefundTransferFailed,
    RoundNotOver,
)
from .events import EntriesAdded, EventBus, FeeAccountChanged, Refunded
from .funds import Treasury
from .identity import NULL_ACCOUNT, derive_identity, validate_identity
from .project_constants import FEE_ACCUMULATOR_MAX, MIN_SLOTS_TO_DRAW
from .randomness import RandomSource

log = logging.getLogger(__name__)


class SlotState(Enum):
    ACTIVE = "active"
    REFUNDED = "refunded"


@dataclass(frozen=True)
class Slot:
    identity: str
    state: SlotState = SlotState.ACTIVE

    @property
    def active(self) -> bool:
        return self.state is SlotState.ACTIVE

    @property
    def holder(self) -> str:
        """What the slot reads as in the legacy participant list."""
        return self.identity if self.active else NULL_ACCOUNT


@dataclass(frozen=True)
class DrawReceipt:
    round_number: int
    caller: str
    timestamp: int
    seed: str
    slot_count: int
    winner_index: int
    winner: str
    winner_slot_refunded: bool
    index_hash_hex: str
    rarity_roll: int
    rarity_hash_hex: str
    rarity: str
    total_collected: int
    prize: int
    fee: int
    leaked: int
    record_id: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _system_clock() -> int:
    return int(time.time())


class RaffleLedger:
    """
    One raffle, reused round after round.

    Every state-changing operation takes the calling identity and runs under
    the ledger lock. Transfers out of the ledger run recipient hooks while
    that lock is held; those hooks may call back in on the same thread. With
    `reentrancy_guard=False` (the default) such calls proceed, which keeps
    the refund ordering exposure of the reference behaviour observable.
    """

    def __init__(
        self,
        entry_fee: int,
        fee_account: str,
        round_duration: int,
        *,
        treasury: Treasury,
        random_source: RandomSource,
        collectibles: Optional[CollectibleRegistry] = None,
        owner: Optional[str] = None,
        clock: Optional[Callable[[], int]] = None,
        address: Optional[str] = None,
        reentrancy_guard: bool = False,
    ) -> None:
        if not isinstance(entry_fee, int) or entry_fee <= 0:
            raise ValueError(f"entry_fee must be a positive integer, got {entry_fee!r}")
        if not isinstance(round_duration, int) or round_duration <= 0:
            raise ValueError(f"round_duration must be a positive integer, got {round_duration!r}")

        self._entry_fee = entry_fee
        self._round_duration = round_duration
        self._fee_account = validate_identity(fee_account)
        self._owner = validate_identity(owner) if owner else self._fee_account

        self.treasury = treasury
        self.random_source = random_source
        self.collectibles = collectibles if collectibles is not None else CollectibleRegistry()
        self.events = EventBus()
        self.address = address or derive_identity(f"raffle-ledger:{id(self)}")
        self.reentrancy_guard = reentrancy_guard

        self._clock = clock or _system_clock
        self._lock = threading.RLock()
        self._transfer_depth = 0
        self._settling = False

        self._slots: List[Slot] = []
        self._round_start_time = self._clock()
        self._previous_winner: Optional[str] = None
        self._accumulated_fees = 0
        self._receipts: List[DrawReceipt] = []

        log.info(
            "Raffle ledger %s: fee=%d duration=%ds fee_account=%s",
            self.address, entry_fee, round_duration, self._fee_account,
        )

    # ------------------------------------------------------------------
    # Read-only queries

    @property
    def entry_fee(self) -> int:
        return self._entry_fee

    @property
    def round_duration(self) -> int:
        return self._round_duration

    @property
    def round_start_time(self) -> int:
        return self._round_start_time

    @property
    def round_ends_at(self) -> int:
        return self._round_start_time + self._round_duration

    def is_round_over(self) -> bool:
        return self._clock() >= self.round_ends_at

    @property
    def previous_winner(self) -> Optional[str]:
        return self._previous_winner

    @property
    def fee_account(self) -> str:
        return self._fee_account

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def accumulated_fees(self) -> int:
        return self._accumulated_fees

    @property
    def held_balance(self) -> int:
        return self.treasury.balance_of(self.address)

    @property
    def participants(self) -> Tuple[str, ...]:
        return tuple(slot.holder for slot in self._slots)

    @property
    def slots(self) -> Tuple[Slot, ...]:
        return tuple(self._slots)

    def active_participant_count(self) -> int:
        return sum(1 for slot in self._slots if slot.active)

    @property
    def rounds_completed(self) -> int:
        return len(self._receipts)

    @property
    def receipts(self) -> Tuple[DrawReceipt, ...]:
        return tuple(self._receipts)

    def get_active_slot(self, identity: str) -> int:
        """
        Legacy lookup: first slot reading as `identity`, else 0.

        0 is also a valid slot; confirm participants[0] before trusting it,
        or use find_active_slot().
        """
        for index, slot in enumerate(self._slots):
            if slot.holder == identity:
                return index
        return 0

    def find_active_slot(self, identity: str) -> Optional[int]:
        for index, slot in enumerate(self._slots):
            if slot.active and slot.identity == identity:
                return index
        return None

    # ------------------------------------------------------------------
    # Internals

    @contextmanager
    def _mutation(self, operation: str) -> Iterator[None]:
        with self._lock:
            # Prize and fee transfers always lock out other mutations; the
            # refund transfer only does so with reentrancy_guard.
            if self._settling or (self.reentrancy_guard and self._transfer_depth):
                log.warning("Blocked re-entrant %s during transfer", operation)
                raise ReentrantCall(operation)
            yield

    def _send(self, target: str, amount: int, settling: bool = False) -> bool:
        # Control leaves the ledger here: the recipient's hook runs.
        self._transfer_depth += 1
        outer_settling = self._settling
        self._settling = outer_settling or settling
        try:
            return self.treasury.transfer(self.address, target, amount)
        except InsufficientFunds as e:
            log.warning("Ledger cannot cover transfer to %s: %s", target, e)
            return False
        finally:
            self._transfer_depth -= 1
            self._settling = outer_settling

    # ------------------------------------------------------------------
    # State-changing operations

    def enter(self, caller: str, new_entrants: Sequence[str], paid_amount: int) -> None:
        with self._mutation("enter"):
            batch = list(new_entrants)
            expected = self._entry_fee * len(batch)
            if paid_amount != expected:
                log.debug("enter rejected: paid %d, expected %d", paid_amount, expected)
                raise InsufficientPayment(expected, paid_amount)

            for identity in batch:
                validate_identity(identity)

            seen = {slot.identity for slot in self._slots if slot.active}
            for identity in batch:
                if identity in seen:
                    log.debug("enter rejected: duplicate %s", identity)
                    raise DuplicateParticipant(identity)
                seen.add(identity)

            if paid_amount:
                # The ledger account has no receive hook, so this cannot be rejected.
                self.treasury.transfer(caller, self.address, paid_amount)

            self._slots.extend(Slot(identity) for identity in batch)
            log.info("%s entered %d slot(s), registry now %d", caller, len(batch), len(self._slots))
            self.events.emit(EntriesAdded(tuple(batch)))

    def refund(self, caller: str, slot_index: int) -> None:
        with self._mutation("refund"):
            if not 0 <= slot_index < len(self._slots):
                raise IndexOutOfRange(slot_index, len(self._slots))
            slot = self._slots[slot_index]
            # Compared with the original entrant, so a repeat refund reports
            # AlreadyRefunded where the reference reports NotEntrant.
            if slot.identity != caller:
                raise NotEntrant(caller, slot_index)
            if not slot.active:
                raise AlreadyRefunded(slot_index)

            # Funds go out before the slot is cleared (reference ordering).
            if not self._send(caller, self._entry_fee):
                raise RefundTransferFailed(f"Refund of slot {slot_index} to {caller} was rejected.")

            self._slots[slot_index] = replace(slot, state=SlotState.REFUNDED)
            log.info("Refunded slot %d to %s", slot_index, caller)
            self.events.emit(Refunded(caller))

    def draw_winner(self, caller: str) -> DrawReceipt:
        with self._mutation("draw_winner"):
            now = self._clock()
            if now < self.round_ends_at:
                raise RoundNotOver(now, self.round_ends_at)

            # Raw slot count; refunded slots still count here and in the pot.
            slot_count = len(self._slots)
            if slot_count < MIN_SLOTS_TO_DRAW:
                raise InsufficientParticipants(slot_count, MIN_SLOTS_TO_DRAW)

            outcome = self.random_source.draw(caller, now, slot_count)
            winner_slot = self._slots[outcome.winner_index]
            winner = winner_slot.holder

            pot = split_pot(self._entry_fee * slot_count)
            new_fees = self._accumulated_fees + pot.fee
            if new_fees > FEE_ACCUMULATOR_MAX:
                raise FeeOverflow(self._accumulated_fees, pot.fee, FEE_ACCUMULATOR_MAX)
            rarity: Rarity = rarity_for_roll(outcome.rarity_roll)

            snapshot = (
                self._slots,
                self._round_start_time,
                self._previous_winner,
                self._accumulated_fees,
            )
            self._accumulated_fees = new_fees
            self._slots = []
            self._round_start_time = now
            self._previous_winner = winner

            try:
                sent = self._send(winner, pot.prize, settling=True)
            except Exception:
                self._restore(snapshot)
                raise
            if not sent:
                self._restore(snapshot)
                raise PrizeTransferFailed(f"Prize of {pot.prize} to {winner} was rejected.")

            record_id = self.collectibles.mint(winner, rarity)

            receipt = DrawReceipt(
                round_number=len(self._receipts) + 1,
                caller=caller,
                timestamp=now,
                seed=outcome.seed,
                slot_count=slot_count,
                winner_index=outcome.winner_index,
                winner=winner,
                winner_slot_refunded=not winner_slot.active,
                index_hash_hex=outcome.index_hash_hex,
                rarity_roll=outcome.rarity_roll,
                rarity_hash_hex=outcome.rarity_hash_hex,
                rarity=rarity.name,
                total_collected=pot.total,
                prize=pot.prize,
                fee=pot.fee,
                leaked=pot.leaked,
                record_id=record_id,
            )
            self._receipts.append(receipt)

            if receipt.winner_slot_refunded:
                log.warning("Round %d drew refunded slot %d; prize sent to the null account",
                            receipt.round_number, outcome.winner_index)
            log.info(
                "Round %d: winner %s (slot %d/%d), prize=%d fee=%d leaked=%d rarity=%s",
                receipt.round_number, winner, outcome.winner_index, slot_count,
                pot.prize, pot.fee, pot.leaked, rarity.name,
            )
            return receipt

    def _restore(self, snapshot: Tuple[List[Slot], int, Optional[str], int]) -> None:
        (
            self._slots,
            self._round_start_time,
            self._previous_winner,
            self._accumulated_fees,
        ) = snapshot
        log.warning("Prize transfer failed; draw rolled back")

    def withdraw_fees(self, caller: str) -> int:
        with self._mutation("withdraw_fees"):
            held = self.held_balance
            if held != self._accumulated_fees:
                raise ActiveRoundFundsOutstanding(held, self._accumulated_fees)

            amount = self._accumulated_fees
            if not self._send(self._fee_account, amount, settling=True):
                raise FeeTransferFailed(f"Fee withdrawal of {amount} to {self._fee_account} was rejected.")
            self._accumulated_fees = 0
            log.info("%s withdrew %d in fees to %s", caller, amount, self._fee_account)
            return amount

    def change_fee_account(self, caller: str, new_account: str) -> None:
        with self._mutation("change_fee_account"):
            if caller != self._owner:
                raise NotOwner(caller)
            self._fee_account = validate_identity(new_account)
            log.info("Fee account changed to %s", new_account)
            self.events.emit(FeeAccountChanged(new_account))
