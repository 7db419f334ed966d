from solana_fomo3d.airdrop import compute_ticket, is_eligible, is_winner, play_airdrop, prize_percent
from solana_fomo3d.clock import ClockSample
from solana_fomo3d.project_constants import AIRDROP_TICKET_RANGE, LAMPORTS_PER_SOL
from solana_fomo3d.records import make_identity

PLAYER = make_identity("alice")
SAMPLE = ClockSample(unix_timestamp=1_700_000_000, slot=250_000_000, epoch=580)


def test_eligibility_threshold_is_strict():
    assert not is_eligible(LAMPORTS_PER_SOL // 10)
    assert is_eligible(LAMPORTS_PER_SOL // 10 + 1)


def test_prize_tiers():
    assert prize_percent(LAMPORTS_PER_SOL // 5) == 25
    assert prize_percent(LAMPORTS_PER_SOL) == 25
    assert prize_percent(LAMPORTS_PER_SOL + 1) == 50
    assert prize_percent(10 * LAMPORTS_PER_SOL) == 50
    assert prize_percent(10 * LAMPORTS_PER_SOL + 1) == 75


def test_ticket_is_deterministic_and_in_range():
    ticket, digest_hex, hash_int = compute_ticket(PLAYER, SAMPLE.fingerprint())
    assert 0 <= ticket < AIRDROP_TICKET_RANGE
    assert len(digest_hex) == 64
    assert hash_int % AIRDROP_TICKET_RANGE == ticket
    assert compute_ticket(PLAYER, SAMPLE.fingerprint()) == (ticket, digest_hex, hash_int)


def test_ticket_depends_on_player_and_clock():
    tickets = {compute_ticket(PLAYER, SAMPLE.fingerprint() + i)[1] for i in range(5)}
    tickets.add(compute_ticket(make_identity("bob"), SAMPLE.fingerprint())[1])
    assert len(tickets) == 6


def test_win_boundaries():
    assert is_winner(998, 999)
    assert not is_winner(999, 999)
    assert not is_winner(0, 0)
    for ticket in range(AIRDROP_TICKET_RANGE):
        assert is_winner(ticket, 1000)


def test_ineligible_purchase_leaves_counter_alone():
    outcome = play_airdrop(PLAYER, SAMPLE, LAMPORTS_PER_SOL // 10, tracker=17, unawarded=1_000)
    assert not outcome.eligible
    assert outcome.tracker == 17
    assert not outcome.won


def test_counter_at_999_always_wins_next_time():
    outcome = play_airdrop(PLAYER, SAMPLE, LAMPORTS_PER_SOL // 5, tracker=999, unawarded=1_000)
    assert outcome.eligible
    assert outcome.won
    assert outcome.prize == 250
    assert outcome.tracker == 0


def test_counter_at_998_wins_unless_ticket_is_999():
    ticket, _, _ = compute_ticket(PLAYER, SAMPLE.fingerprint())
    outcome = play_airdrop(PLAYER, SAMPLE, 20 * LAMPORTS_PER_SOL, tracker=998, unawarded=1_000)
    assert outcome.ticket == ticket
    assert outcome.won == (ticket < 999)
    if outcome.won:
        assert outcome.prize == 750
        assert outcome.tracker == 0
    else:
        assert outcome.tracker == 999


def test_first_eligible_purchase_wins_only_on_ticket_zero():
    ticket, _, _ = compute_ticket(PLAYER, SAMPLE.fingerprint())
    outcome = play_airdrop(PLAYER, SAMPLE, 2 * LAMPORTS_PER_SOL, tracker=0, unawarded=1_000)
    assert outcome.won == (ticket == 0)
    assert outcome.tracker == (0 if ticket == 0 else 1)
