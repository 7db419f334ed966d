import pytest

from solana_fomo3d.checked import U128_MAX
from solana_fomo3d.errors import ErrorCode, MathError, RecordError
from solana_fomo3d.records import make_identity
from solana_fomo3d.state import (
    GAME_STATE_SIZE,
    NULL_KEY,
    PLAYER_ROUND_STATE_SIZE,
    ROUND_STATE_SIZE,
    GameState,
    PlayerRoundState,
    RoundState,
)
from solana_fomo3d.teams import Team


def test_record_sizes_are_fixed():
    assert GAME_STATE_SIZE == 1 + 4 * 8 + 4 * 32
    assert PLAYER_ROUND_STATE_SIZE == 32 + 8 + 32 + 7 * 16
    assert ROUND_STATE_SIZE == 8 + 32 + 1 + 8 + 8 + 1 + 16 + 16 + 4 * 16 + 7 * 16 + 8 + 6 * 16
    assert len(RoundState().pack()) == ROUND_STATE_SIZE


def test_zeroed_bytes_decode_to_empty_records():
    round_state = RoundState.unpack(bytes(ROUND_STATE_SIZE))
    assert round_state == RoundState()
    assert not round_state.has_leader
    player_round = PlayerRoundState.unpack(bytes(PLAYER_ROUND_STATE_SIZE))
    assert player_round.player == NULL_KEY
    assert not player_round.has_referrer


def test_round_state_survives_packing():
    round_state = RoundState(
        round_id=3,
        lead_player=make_identity("alice"),
        lead_player_team=int(Team.BULL),
        start_time=1_700_000_000,
        end_time=1_700_003_600,
        ended=True,
        accum_keys=2**70 + 5,
        accum_sol_pot=U128_MAX,
        accum_sol_by_team=[1, 2, 3, 2**100],
        airdrop_tracker=999,
        withdrawn_next_round=42,
        withdrawn_dividend_a=7,
        carried_airdrop=3,
    )
    decoded = RoundState.unpack(round_state.pack())
    assert decoded == round_state
    assert decoded.team == Team.BULL


def test_game_state_keeps_wallets():
    game = GameState(
        version=2,
        round_id=7,
        community_wallet=make_identity("community-wallet"),
        dividend_b_wallet=make_identity("dividend-b-wallet"),
    )
    assert GameState.unpack(game.pack()) == game


def test_wrong_size_is_rejected():
    with pytest.raises(RecordError) as e:
        RoundState.unpack(bytes(ROUND_STATE_SIZE - 1))
    assert e.value.code == ErrorCode.WRONG_RECORD


def test_bad_public_key_is_rejected():
    with pytest.raises(RecordError):
        PlayerRoundState(player="not-a-key!").pack()
    with pytest.raises(RecordError):
        PlayerRoundState(player="1111").pack()


def test_values_too_wide_for_layout_are_rejected():
    with pytest.raises(MathError) as e:
        RoundState(accum_keys=U128_MAX + 1).pack()
    assert e.value.code == ErrorCode.CAST_LOSS
    with pytest.raises(MathError):
        RoundState(round_id=2**64).pack()


def test_pool_total():
    round_state = RoundState(
        accum_community_share=1,
        accum_airdrop_share=2,
        accum_next_round_share=3,
        accum_aff_share=4,
        accum_dividend_a_share=5,
        accum_dividend_b_share=6,
        accum_prize_share=7,
    )
    assert round_state.pool_total() == 28
