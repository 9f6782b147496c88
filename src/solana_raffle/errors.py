from __future__ import annotations


class RaffleError(RuntimeError):
    """Base class for every failure surfaced by the ledger or registry."""


class InvalidIdentity(RaffleError, ValueError):
    def __init__(self, identity: object, reason: str) -> None:
        super().__init__(f"Invalid identity {identity!r}: {reason}")
        self.identity = identity


class InsufficientPayment(RaffleError):
    def __init__(self, expected: int, paid: int) -> None:
        super().__init__(f"Must send exactly {expected} to enter (got {paid}).")
        self.expected = expected
        self.paid = paid


class InsufficientFunds(RaffleError):
    def __init__(self, account: str, balance: int, amount: int) -> None:
        super().__init__(f"Account {account} holds {balance}, cannot send {amount}.")
        self.account = account
        self.balance = balance
        self.amount = amount


class DuplicateParticipant(RaffleError):
    def __init__(self, identity: str) -> None:
        super().__init__(f"Duplicate participant: {identity}")
        self.identity = identity


class IndexOutOfRange(RaffleError):
    def __init__(self, index: int, size: int) -> None:
        super().__init__(f"Slot {index} out of range (registry has {size} slots).")
        self.index = index
        self.size = size


class NotEntrant(RaffleError):
    def __init__(self, caller: str, index: int) -> None:
        super().__init__(f"{caller} does not hold slot {index}; only the entrant can refund.")
        self.caller = caller
        self.index = index


class AlreadyRefunded(RaffleError):
    def __init__(self, index: int) -> None:
        super().__init__(f"Slot {index} already refunded or not active.")
        self.index = index


class RefundTransferFailed(RaffleError):
    pass


class RoundNotOver(RaffleError):
    def __init__(self, now: int, ends_at: int) -> None:
        super().__init__(f"Raffle not over: now={now}, ends at {ends_at}.")
        self.now = now
        self.ends_at = ends_at


class InsufficientParticipants(RaffleError):
    def __init__(self, slots: int, required: int) -> None:
        super().__init__(f"Need at least {required} slots to draw (have {slots}).")
        self.slots = slots
        self.required = required


class FeeOverflow(RaffleError):
    def __init__(self, current: int, addition: int, ceiling: int) -> None:
        super().__init__(
            f"Fee accumulator overflow: {current} + {addition} exceeds {ceiling}."
        )
        self.current = current
        self.addition = addition
        self.ceiling = ceiling


class PrizeTransferFailed(RaffleError):
    pass


class ActiveRoundFundsOutstanding(RaffleError):
    def __init__(self, held: int, fees: int) -> None:
        super().__init__(
            f"There are currently players active: held={held}, fees={fees}."
        )
        self.held = held
        self.fees = fees


class FeeTransferFailed(RaffleError):
    pass


class NotOwner(RaffleError):
    def __init__(self, caller: str) -> None:
        super().__init__(f"{caller} is not the owner.")
        self.caller = caller


class ReentrantCall(RaffleError):
    def __init__(self, operation: str) -> None:
        super().__init__(f"Re-entrant call to {operation} during a ledger transfer.")
        self.operation = operation


class UnknownRecord(RaffleError):
    def __init__(self, record_id: int) -> None:
        super().__init__(f"No record minted with id {record_id}.")
        self.record_id = record_id
