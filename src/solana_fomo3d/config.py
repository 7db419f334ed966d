from __future__ import annotations

import os
from dataclasses import dataclass
from dotenv import load_dotenv

from .project_constants import ROUND_INC_TIME, ROUND_INIT_TIME, ROUND_MAX_TIME


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise RuntimeError(f"{name} must not be negative, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    rpc_url: str | None = None
    game_version: int = 1
    round_init_time: int = ROUND_INIT_TIME
    round_inc_time: int = ROUND_INC_TIME
    round_max_time: int = ROUND_MAX_TIME

    @staticmethod
    def from_env(rpc_url_override: str | None = None) -> "Settings":
        load_dotenv()

        return Settings(
            rpc_url=_rpc_url_from_env(rpc_url_override),
            game_version=_int_from_env("FOMO_GAME_VERSION", 1),
            round_init_time=_int_from_env("FOMO_ROUND_INIT_TIME", ROUND_INIT_TIME),
            round_inc_time=_int_from_env("FOMO_ROUND_INC_TIME", ROUND_INC_TIME),
            round_max_time=_int_from_env("FOMO_ROUND_MAX_TIME", ROUND_MAX_TIME),
        )

    def require_rpc_url(self) -> str:
        if not self.rpc_url:
            raise RuntimeError(
                "Missing HELIUS_API_KEY (or RPC_URL). Put it in .env or export it."
            )
        return self.rpc_url


def _rpc_url_from_env(rpc_url_override: str | None) -> str | None:
    # If user provides --rpc-url, trust it.
    if rpc_url_override:
        return rpc_url_override

    # Otherwise, use RPC_URL from env if present, else build helius url from key.
    env_rpc = os.getenv("RPC_URL", "").strip()
    if env_rpc:
        return env_rpc

    helius_key = os.getenv("HELIUS_API_KEY", "").strip()
    if not helius_key:
        return None

    return f"https://mainnet.helius-rpc.com/?api-key={helius_key}"
