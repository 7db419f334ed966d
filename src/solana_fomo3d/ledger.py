from __future__ import annotations

from dataclasses import dataclass

from .checked import try_add, try_floor_div, try_mul, try_sub
from .state import PlayerRoundState, RoundState


def calculate_player_dividend_a(player_keys: int, total_keys: int, accum_dividend_a: int) -> int:
    """
    (player's keys / total keys) * dividend-A pool, rounded down.

    Rounding leaves dust in the pot: players holding 333, 333 and 334 of
    1000 keys over a pool of 100 get 33 each and 1 stays behind.
    Sweeping it would mean coordinating every player's withdrawal, so it
    is left in the protocol.
    """
    if total_keys == 0:
        return 0
    return try_floor_div(try_mul(player_keys, accum_dividend_a), total_keys)


@dataclass(frozen=True)
class Owed:
    winnings: int
    affiliate: int
    dividend_a: int

    @property
    def total(self) -> int:
        return try_add(try_add(self.winnings, self.affiliate), self.dividend_a)


def owed_to_player(player_round: PlayerRoundState, round_state: RoundState) -> Owed:
    dividend_a = calculate_player_dividend_a(
        player_round.accum_keys,
        round_state.accum_keys,
        round_state.accum_dividend_a_share,
    )
    # A share can shrink after an early withdrawal when later keys bring
    # in less dividend per key than the round average.
    if dividend_a > player_round.withdrawn_dividend_a:
        dividend_a = try_sub(dividend_a, player_round.withdrawn_dividend_a)
    else:
        dividend_a = 0
    # Whatever the shares say, the round never pays out more than its pool.
    dividend_a = min(dividend_a, round_state.unpaid_dividend_a)
    return Owed(
        winnings=try_sub(player_round.accum_winnings, player_round.withdrawn_winnings),
        affiliate=try_sub(player_round.accum_aff, player_round.withdrawn_aff),
        dividend_a=dividend_a,
    )


def record_withdrawal(player_round: PlayerRoundState, round_state: RoundState, owed: Owed) -> None:
    """Call only once the transfer went through."""
    round_state.withdrawn_dividend_a = try_add(round_state.withdrawn_dividend_a, owed.dividend_a)
    player_round.withdrawn_winnings = try_add(player_round.withdrawn_winnings, owed.winnings)
    player_round.withdrawn_aff = try_add(player_round.withdrawn_aff, owed.affiliate)
    player_round.withdrawn_dividend_a = try_add(
        player_round.withdrawn_dividend_a, owed.dividend_a
    )
