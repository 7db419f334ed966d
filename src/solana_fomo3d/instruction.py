from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .project_constants import ROUND_INC_TIME, ROUND_INIT_TIME, ROUND_MAX_TIME


@dataclass(frozen=True)
class InitiateGame:
    version: int
    community_wallet: str
    dividend_b_wallet: str
    round_init_time: int = ROUND_INIT_TIME
    round_inc_time: int = ROUND_INC_TIME
    round_max_time: int = ROUND_MAX_TIME


@dataclass(frozen=True)
class InitiateRound:
    version: int


@dataclass(frozen=True)
class PurchaseKeys:
    version: int
    amount: int  # lamports
    team: int
    referrer: Optional[str] = None


@dataclass(frozen=True)
class WithdrawSol:
    version: int
    round_id: int


@dataclass(frozen=True)
class EndRound:
    version: int


@dataclass(frozen=True)
class WithdrawCommunityRewards:
    version: int
    round_id: int
    wallet: str


@dataclass(frozen=True)
class WithdrawDividendBRewards:
    version: int
    round_id: int
    wallet: str


GameInstruction = Union[
    InitiateGame,
    InitiateRound,
    PurchaseKeys,
    WithdrawSol,
    EndRound,
    WithdrawCommunityRewards,
    WithdrawDividendBRewards,
]
