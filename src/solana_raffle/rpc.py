from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

log = logging.getLogger(__name__)


class RpcClient:
    """Minimal Solana JSON-RPC client; only what the raffle seed needs."""

    def __init__(
        self,
        rpc_url: str,
        timeout_s: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.client = httpx.Client(timeout=timeout_s, transport=transport)
        self._next_id = 1

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _call(self, method: str, params: List[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id,
            "method": method,
            "params": params,
        }
        self._next_id += 1
        log.debug("RPC %s %s", method, params)
        resp = self.client.post(self.rpc_url, json=payload)
        resp.raise_for_status()
        data = resp.json()
        if "error" in data:
            raise RuntimeError(f"RPC error ({method}): {data['error']}")
        return data.get("result")

    def get_slot(self, commitment: str = "finalized") -> int:
        return int(self._call("getSlot", [{"commitment": commitment}]))

    def get_block_time(self, slot: int) -> int:
        """Unix timestamp of a slot."""
        result = self._call("getBlockTime", [slot])
        if result is None:
            raise RuntimeError(f"Timestamp not available for slot {slot}")
        return int(result)

    def get_latest_blockhash(self, commitment: str = "finalized") -> str:
        result = self._call("getLatestBlockhash", [{"commitment": commitment}])
        # Response shape: {"context": {...}, "value": {"blockhash": ..., ...}}
        value = (result or {}).get("value") or {}
        blockhash = value.get("blockhash")
        if not isinstance(blockhash, str):
            raise RuntimeError("getLatestBlockhash returned no blockhash.")
        return blockhash

    def get_blockhash_for_slot(self, slot: int) -> str:
        result = self._call(
            "getBlock",
            [slot, {"encoding": "json", "transactionDetails": "none", "rewards": False}],
        )
        if not result or "blockhash" not in result:
            raise RuntimeError(f"Slot {slot}: getBlock returned no blockhash.")
        return result["blockhash"]


def _blockhash_from_feed(feed: Dict[str, Any], slot_hint: Optional[int]) -> Optional[str]:
    if isinstance(feed.get("blockhash"), str):
        if slot_hint is not None and "slot" in feed and int(feed["slot"]) != int(slot_hint):
            raise RuntimeError(
                f"Block feed slot mismatch: file slot={feed['slot']} vs expected slot={slot_hint}"
            )
        return feed["blockhash"]

    result = feed.get("result")
    if isinstance(result, dict):
        if isinstance(result.get("blockhash"), str):
            return result["blockhash"]
        value = result.get("value")
        if isinstance(value, dict) and isinstance(value.get("blockhash"), str):
            return value["blockhash"]

    blocks = feed.get("blocks")
    if slot_hint is not None and isinstance(blocks, dict):
        block = blocks.get(str(int(slot_hint)))
        if isinstance(block, dict) and isinstance(block.get("blockhash"), str):
            return block["blockhash"]

    return None


def load_seed_from_block_feed_file(path: str, slot_hint: Optional[int] = None) -> str:
    """
    Reads the environment seed from a saved block feed:
    a raw blockhash string, or JSON with `blockhash`, `result.blockhash`,
    `result.value.blockhash` (getLatestBlockhash) or `blocks[slot].blockhash`.
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = f.read().strip()

    if raw and raw[0] != "{":
        return raw

    try:
        feed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise RuntimeError(f"Block feed file is not valid JSON or raw string: {e}")

    blockhash = _blockhash_from_feed(feed, slot_hint) if isinstance(feed, dict) else None
    if blockhash is None:
        raise RuntimeError(
            "Could not find a blockhash in block feed file. "
            "Expected raw string or JSON with blockhash/result.blockhash/(blocks[slot].blockhash)."
        )
    return blockhash
