from __future__ import annotations

import json
from typing import Any, Dict, List

from .draw import compute_rarity_roll, compute_winner_index, rarity_for_roll, split_pot
from .identity import NULL_ACCOUNT


def _check(label: str, audit_value: Any, recomputed: Any) -> None:
    if audit_value != recomputed:
        raise RuntimeError(f"{label} mismatch: audit={audit_value} recomputed={recomputed}")


def verify_receipt(receipt: Dict[str, Any], slots: List[Dict[str, Any]], entry_fee: int) -> Dict[str, Any]:
    """
    Recompute a draw from its receipt and the slot list it was taken over.
    Raises RuntimeError on the first mismatch.
    """
    caller = receipt["caller"]
    seed = receipt["seed"]
    timestamp = int(receipt["timestamp"])

    _check("Slot count", int(receipt["slot_count"]), len(slots))

    index, index_hash = compute_winner_index(caller, timestamp, seed, len(slots))
    _check("Index hash", receipt["index_hash_hex"], index_hash)
    _check("Winner index", int(receipt["winner_index"]), index)

    slot = slots[index]
    refunded = slot["state"] != "active"
    _check("Winner", receipt["winner"], NULL_ACCOUNT if refunded else slot["identity"])
    _check("Refunded winner flag", bool(receipt["winner_slot_refunded"]), refunded)

    roll, roll_hash = compute_rarity_roll(caller, seed)
    _check("Rarity hash", receipt["rarity_hash_hex"], roll_hash)
    _check("Rarity roll", int(receipt["rarity_roll"]), roll)
    _check("Rarity", receipt["rarity"], rarity_for_roll(roll).name)

    pot = split_pot(entry_fee * len(slots))
    _check("Total collected", int(receipt["total_collected"]), pot.total)
    _check("Prize", int(receipt["prize"]), pot.prize)
    _check("Fee", int(receipt["fee"]), pot.fee)
    _check("Leaked", int(receipt["leaked"]), pot.leaked)

    return {
        "ok": True,
        "round_number": receipt["round_number"],
        "winner": receipt["winner"],
        "winner_index": index,
        "rarity": receipt["rarity"],
        "prize": pot.prize,
        "fee": pot.fee,
        "leaked": pot.leaked,
        "index_hash_hex": index_hash,
    }


def verify_audit(audit_path: str) -> Dict[str, Any]:
    with open(audit_path, "r", encoding="utf-8") as f:
        audit = json.load(f)

    entry_fee = int(audit["metadata"]["entry_fee"])
    return verify_receipt(audit["receipt"], audit["slots"], entry_fee)
