"""
Airdrop lottery played on qualifying purchases.

(!) NOT A REAL RANDOM NUMBER GENERATOR
The ticket is a hash of the buyer's key and the host clock, so anyone who
can see both can predict it (and time their purchase to win). It needs an
external entropy source before it is used with real money.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Tuple

from .checked import try_add, try_percent, try_rem
from .clock import ClockSample
from .project_constants import (
    AIRDROP_MID_TIER,
    AIRDROP_MIN_CONTRIBUTION,
    AIRDROP_TICKET_RANGE,
    AIRDROP_TOP_TIER,
)
from .state import pubkey_to_bytes

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AirdropOutcome:
    eligible: bool
    tracker: int  # counter after this purchase
    ticket: int | None = None
    won: bool = False
    prize: int = 0


def is_eligible(amount: int) -> bool:
    return amount > AIRDROP_MIN_CONTRIBUTION


def compute_ticket(
    player: str, fingerprint: int, ticket_range: int = AIRDROP_TICKET_RANGE
) -> Tuple[int, str, int]:
    data = pubkey_to_bytes(player) + (fingerprint & 0xFFFFFFFFFFFFFFFF).to_bytes(8, "little")
    digest = hashlib.sha256(data).digest()
    hash_int = int.from_bytes(digest[:16], "little")
    return try_rem(hash_int, ticket_range), digest.hex(), hash_int


def is_winner(ticket: int, tracker: int) -> bool:
    """Every eligible purchase since the last win adds 0.1% to the odds."""
    return ticket < tracker


def prize_percent(amount: int) -> int:
    if amount > AIRDROP_TOP_TIER:
        return 75
    if amount > AIRDROP_MID_TIER:
        return 50
    return 25


def play_airdrop(
    player: str, sample: ClockSample, amount: int, tracker: int, unawarded: int
) -> AirdropOutcome:
    if not is_eligible(amount):
        return AirdropOutcome(eligible=False, tracker=tracker)

    tracker = try_add(tracker, 1, bits=64)
    ticket, _, _ = compute_ticket(player, sample.fingerprint())
    if not is_winner(ticket, tracker):
        return AirdropOutcome(eligible=True, tracker=tracker, ticket=ticket)

    prize = try_percent(unawarded, prize_percent(amount))
    log.info(
        "Airdrop won by %s: ticket %d < %d, prize %d of %d",
        player, ticket, tracker, prize, unawarded,
    )
    # winning restarts the odds
    return AirdropOutcome(eligible=True, tracker=0, ticket=ticket, won=True, prize=prize)

