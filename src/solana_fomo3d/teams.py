from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict

from .project_constants import FEE_POT_BASE_PERCENT, POT_BASE_PERCENT


class Team(IntEnum):
    WHALE = 0
    BEAR = 1
    SNEK = 2
    BULL = 3


# Codes outside the table play for this team
FALLBACK_TEAM = Team.SNEK


@dataclass(frozen=True)
class TeamSplit:
    """
    Two splits per team, as percentages.

    fee_*: applied to every purchase (dividend-A / dividend-B share).
    pot_*: applied to the prize pool when the team leads at round end.
    """

    fee_dividend_a: int
    fee_dividend_b: int
    pot_dividend_a: int
    pot_dividend_b: int

    @property
    def prize_floor_percent(self) -> int:
        return FEE_POT_BASE_PERCENT - self.fee_dividend_a - self.fee_dividend_b

    @property
    def next_round_percent(self) -> int:
        return POT_BASE_PERCENT - self.pot_dividend_a - self.pot_dividend_b


TEAM_SPLITS: Dict[Team, TeamSplit] = {
    Team.WHALE: TeamSplit(fee_dividend_a=30, fee_dividend_b=6, pot_dividend_a=15, pot_dividend_b=10),
    Team.BEAR: TeamSplit(fee_dividend_a=43, fee_dividend_b=0, pot_dividend_a=25, pot_dividend_b=0),
    Team.SNEK: TeamSplit(fee_dividend_a=56, fee_dividend_b=10, pot_dividend_a=20, pot_dividend_b=20),
    Team.BULL: TeamSplit(fee_dividend_a=43, fee_dividend_b=8, pot_dividend_a=30, pot_dividend_b=10),
}


def team_from_code(code: int) -> Team:
    try:
        return Team(code)
    except ValueError:
        return FALLBACK_TEAM


def split_for(team: Team) -> TeamSplit:
    return TEAM_SPLITS[team]
