from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .project_constants import DEFAULT_ENTRY_FEE, DEFAULT_ROUND_DURATION


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {value}")
    return value


def _rpc_url_from_env(rpc_url_override: str | None) -> Optional[str]:
    # If user provides --rpc-url, trust it.
    if rpc_url_override:
        return rpc_url_override

    env_rpc = os.getenv("RPC_URL", "").strip()
    if env_rpc:
        return env_rpc

    helius_key = os.getenv("HELIUS_API_KEY", "").strip()
    if helius_key:
        return f"https://mainnet.helius-rpc.com/?api-key={helius_key}"
    return None


@dataclass(frozen=True)
class Settings:
    entry_fee: int
    fee_account: str
    round_duration: int
    owner: str
    rpc_url: Optional[str] = None

    @staticmethod
    def from_env(rpc_url_override: str | None = None) -> "Settings":
        load_dotenv()

        fee_account = os.getenv("RAFFLE_FEE_ACCOUNT", "").strip()
        if not fee_account:
            raise RuntimeError(
                "Missing RAFFLE_FEE_ACCOUNT. Put it in .env or export it."
            )

        return Settings(
            entry_fee=_int_from_env("RAFFLE_ENTRY_FEE", DEFAULT_ENTRY_FEE),
            fee_account=fee_account,
            round_duration=_int_from_env("RAFFLE_ROUND_DURATION", DEFAULT_ROUND_DURATION),
            owner=os.getenv("RAFFLE_OWNER", "").strip() or fee_account,
            rpc_url=_rpc_url_from_env(rpc_url_override),
        )

    def require_rpc_url(self) -> str:
        if not self.rpc_url:
            raise RuntimeError(
                "Missing HELIUS_API_KEY (or RPC_URL). Put it in .env or export it."
            )
        return self.rpc_url
