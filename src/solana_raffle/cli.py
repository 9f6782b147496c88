from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .config import Settings
from .draw import to_sol
from .errors import RaffleError
from .funds import Treasury
from .identity import load_identities
from .ledger import DrawReceipt, RaffleLedger
from .metadata import render_document, to_data_uri
from .randomness import (
    BlockFeedRandomSource,
    BlockhashRandomSource,
    RandomSource,
    StaticRandomSource,
)
from .rpc import RpcClient
from .verify import verify_audit


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _random_source(args: argparse.Namespace, settings: Settings) -> RandomSource:
    if args.seed:
        return StaticRandomSource(args.seed)
    if args.block_feed_file:
        return BlockFeedRandomSource(args.block_feed_file, slot_hint=args.slot)
    rpc = RpcClient(settings.require_rpc_url(), timeout_s=args.timeout)
    return BlockhashRandomSource(rpc, slot=args.slot)


def cmd_seed(args: argparse.Namespace) -> int:
    settings = Settings.from_env(rpc_url_override=args.rpc_url)
    source = _random_source(args, settings)
    try:
        seed = source.environment_seed()
    finally:
        if isinstance(source, BlockhashRandomSource):
            source.rpc.close()
    print(f"Seed          : {seed}")
    print(f"Seed source   : {source.seed_source}")
    return 0


def _run_round(
    args: argparse.Namespace,
    settings: Settings,
    source: RandomSource,
    entrants: List[str],
) -> Tuple[RaffleLedger, DrawReceipt, List[Dict[str, str]], Optional[int]]:
    log = logging.getLogger("simulate")

    now = [int(datetime.now(timezone.utc).timestamp())]
    treasury = Treasury()
    ledger = RaffleLedger(
        settings.entry_fee,
        settings.fee_account,
        settings.round_duration,
        treasury=treasury,
        random_source=source,
        owner=settings.owner,
        clock=lambda: now[0],
    )

    for identity in entrants:
        treasury.deposit(identity, settings.entry_fee)
        ledger.enter(identity, [identity], settings.entry_fee)
    log.info("Entrants           : %d", len(entrants))
    log.info("Held balance       : %d", ledger.held_balance)

    for identity in args.refund or []:
        index = ledger.find_active_slot(identity)
        if index is None:
            raise SystemExit(f"{identity} holds no active slot to refund.")
        ledger.refund(identity, index)

    slots = [{"identity": s.identity, "state": s.state.value} for s in ledger.slots]
    now[0] = ledger.round_ends_at
    caller = args.caller or settings.owner
    try:
        receipt = ledger.draw_winner(caller)
    except RaffleError as e:
        raise SystemExit(f"Draw failed: {e}")

    fees_withdrawn = None
    if ledger.held_balance == ledger.accumulated_fees:
        fees_withdrawn = ledger.withdraw_fees(caller)
    return ledger, receipt, slots, fees_withdrawn


def cmd_simulate(args: argparse.Namespace) -> int:
    """Runs one full round in memory and writes its audit."""
    settings = Settings.from_env(rpc_url_override=args.rpc_url)

    try:
        entrants = load_identities(args.entrants)
    except RaffleError as e:
        raise SystemExit(f"Bad entrants file: {e}")
    if not entrants:
        raise SystemExit(f"No entrants in {args.entrants}.")

    source = _random_source(args, settings)
    try:
        ledger, receipt, slots, fees_withdrawn = _run_round(args, settings, source, entrants)
    except RaffleError as e:
        raise SystemExit(f"Round failed: {e}")
    finally:
        if isinstance(source, BlockhashRandomSource):
            source.rpc.close()

    description = ledger.collectibles.describe(receipt.record_id)
    document = render_document(description, receipt.winner)

    audit: Dict[str, Any] = {
        "metadata": {
            "tool": "solana-raffle",
            "version": "1.0.0",
            "generated_at_utc": datetime.now(timezone.utc).isoformat(),
            "entry_fee": settings.entry_fee,
            "round_duration": settings.round_duration,
            "fee_account": settings.fee_account,
            "seed_source": source.seed_source,
            "fees_withdrawn": fees_withdrawn,
        },
        "receipt": receipt.to_dict(),
        "slots": slots,
        "record": {
            "record_id": receipt.record_id,
            "token_uri": to_data_uri(document),
        },
    }

    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(audit, f, indent=2)

    print("========================================")
    print("🎟️  RAFFLE ROUND SIMULATION")
    print("========================================")
    print(f"Entry fee     : {to_sol(settings.entry_fee)} SOL")
    print(f"Slots         : {receipt.slot_count}")
    print(f"Seed          : {receipt.seed}")
    print(f"Index hash    : {receipt.index_hash_hex}")
    print("----------------------------------------")
    print("🏆 WINNER")
    print(f"Address       : {receipt.winner}")
    print(f"Slot          : {receipt.winner_index}")
    print(f"Prize         : {to_sol(receipt.prize)} SOL")
    print(f"Fee accrued   : {to_sol(receipt.fee)} SOL (leaked {receipt.leaked} lamports)")
    print(f"Record        : #{receipt.record_id} {description.name} ({receipt.rarity})")
    print("----------------------------------------")
    print(f"🧾 Wrote audit: {args.out}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    result = verify_audit(args.audit)
    print("✅ AUDIT VERIFIED")
    print(f"Round         : {result['round_number']}")
    print(f"Winner        : {result['winner']}")
    print(f"Winner slot   : {result['winner_index']}")
    print(f"Rarity        : {result['rarity']}")
    print(f"Index hash    : {result['index_hash_hex']}")
    return 0


def _add_seed_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--seed", default=None, help="Use a fixed seed instead of a blockhash.")
    p.add_argument("--slot", type=int, default=None, help="Seed from this slot's blockhash.")
    p.add_argument(
        "--block-feed-file",
        default=None,
        help=(
            "Path to a block feed file to source the seed (blockhash). "
            "Can be raw string or JSON containing blockhash."
        ),
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="solana-raffle",
        description="Fixed-fee raffle ledger: simulate rounds and verify draws.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--rpc-url", default=None, help="Override RPC URL (else use env).")
    p.add_argument("--timeout", type=float, default=60.0, help="RPC timeout seconds.")

    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("seed", help="Show the environment seed a draw would use.")
    _add_seed_options(s)
    s.set_defaults(func=cmd_seed)

    sim = sub.add_parser("simulate", help="Run one round in memory and write an audit JSON.")
    sim.add_argument("--entrants", required=True, help="File with one address per line.")
    sim.add_argument(
        "--refund", action="append", default=None, metavar="ADDRESS",
        help="Refund this entrant before the draw (repeatable).",
    )
    sim.add_argument("--caller", default=None, help="Identity calling the draw (default: owner).")
    sim.add_argument("--out", default="audit.json", help="Audit output JSON path.")
    _add_seed_options(sim)
    sim.set_defaults(func=cmd_simulate)

    v = sub.add_parser("verify", help="Verify an existing audit.json deterministically.")
    v.add_argument("--audit", required=True, help="Path to audit.json.")
    v.set_defaults(func=cmd_verify)

    return p


def main(argv: List[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    raise SystemExit(args.func(args))
