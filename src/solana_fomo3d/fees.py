from __future__ import annotations

import logging
from dataclasses import astuple, dataclass

from .checked import try_add, try_floor_div, try_percent, try_sub
from .errors import ErrorCode, InvariantViolation
from .project_constants import (
    AFFILIATE_DIVISOR,
    AIRDROP_DIVISOR,
    COMMUNITY_DIVISOR,
    GRAND_PRIZE_MIN_PERCENT,
    NEXT_ROUND_DIVISOR,
)
from .teams import TeamSplit

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurchaseSplit:
    community: int
    airdrop: int
    next_round: int
    affiliate: int  # 0 when there is no referrer; the share moved to dividend_b
    dividend_a: int
    dividend_b: int
    prize: int

    @property
    def total(self) -> int:
        total = 0
        for share in astuple(self):
            total = try_add(total, share)
        return total


@dataclass(frozen=True)
class SettlementSplit:
    community: int
    dividend_a: int
    dividend_b: int
    next_round: int
    grand_prize: int

    @property
    def total(self) -> int:
        total = 0
        for share in astuple(self):
            total = try_add(total, share)
        return total


def split_purchase(amount: int, team: TeamSplit, has_referrer: bool) -> PurchaseSplit:
    """Divide a purchase between the round's pools."""
    community = try_floor_div(amount, COMMUNITY_DIVISOR)
    airdrop = try_floor_div(amount, AIRDROP_DIVISOR)
    next_round = try_floor_div(amount, NEXT_ROUND_DIVISOR)
    affiliate = try_floor_div(amount, AFFILIATE_DIVISOR)

    dividend_b = try_percent(amount, team.fee_dividend_b)
    if not has_referrer:
        dividend_b = try_add(dividend_b, affiliate)
        affiliate = 0
    dividend_a = try_percent(amount, team.fee_dividend_a)

    prize = amount
    for share in (community, airdrop, next_round, affiliate, dividend_b, dividend_a):
        prize = try_sub(prize, share)

    floor = try_percent(amount, team.prize_floor_percent)
    if prize < floor:
        raise InvariantViolation(
            ErrorCode.SPLIT_FLOOR_VIOLATED,
            f"prize share {prize} below floor {floor} for amount {amount}",
        )

    split = PurchaseSplit(
        community=community,
        airdrop=airdrop,
        next_round=next_round,
        affiliate=affiliate,
        dividend_a=dividend_a,
        dividend_b=dividend_b,
        prize=prize,
    )
    log.debug("Purchase split for %d: %s", amount, split)
    return split


def split_pot(in_play: int, team: TeamSplit) -> SettlementSplit:
    """Divide the prize pool at round end according to the leading team."""
    community = try_floor_div(in_play, COMMUNITY_DIVISOR)
    dividend_a = try_percent(in_play, team.pot_dividend_a)
    dividend_b = try_percent(in_play, team.pot_dividend_b)
    next_round = try_percent(in_play, team.next_round_percent)

    grand_prize = in_play
    for share in (community, dividend_a, dividend_b, next_round):
        grand_prize = try_sub(grand_prize, share)

    floor = try_percent(in_play, GRAND_PRIZE_MIN_PERCENT)
    if grand_prize < floor:
        raise InvariantViolation(
            ErrorCode.SPLIT_FLOOR_VIOLATED,
            f"grand prize {grand_prize} below floor {floor} for pot {in_play}",
        )

    return SettlementSplit(
        community=community,
        dividend_a=dividend_a,
        dividend_b=dividend_b,
        next_round=next_round,
        grand_prize=grand_prize,
    )


def rollover_pot(in_play: int) -> SettlementSplit:
    """Settlement of a round nobody bought into: everything moves to the next round."""
    return SettlementSplit(
        community=0, dividend_a=0, dividend_b=0, next_round=in_play, grand_prize=0
    )
