from __future__ import annotations

import pytest

from solana_fomo3d.bank import Authority
from solana_fomo3d.clock import ManualClock
from solana_fomo3d.host import Host
from solana_fomo3d.processor import Processor, PurchaseReceipt
from solana_fomo3d.project_constants import LAMPORTS_PER_SOL
from solana_fomo3d.records import make_identity, player_round_state_seed, round_state_seed
from solana_fomo3d.state import PlayerRoundState, RoundState

START = 1_700_000_000
VERSION = 1


class GameFixture:
    """A game v1 on an in-memory host, with funded wallets by label."""

    def __init__(self, round_init_time: int = 3600, round_inc_time: int = 30, round_max_time: int = 86400) -> None:
        self.clock = ManualClock(START, slot=250_000_000, epoch=580)
        self.host = Host.in_memory(self.clock)
        self.processor = Processor(self.host)
        self.bank = self.host.bank

        self.creator = self.account("creator")
        self.community = self.account("community")
        self.dividend_b = self.account("dividend-b")
        self.community_wallet = make_identity("community-wallet")
        self.dividend_b_wallet = make_identity("dividend-b-wallet")
        self.bank.open_account(self.community_wallet, owner=self.community.key)
        self.bank.open_account(self.dividend_b_wallet, owner=self.dividend_b.key)

        self.game_handle = self.processor.initiate_game(
            self.creator,
            VERSION,
            self.community_wallet,
            self.dividend_b_wallet,
            round_init_time=round_init_time,
            round_inc_time=round_inc_time,
            round_max_time=round_max_time,
        )

    def account(self, label: str, lamports: int = 0) -> Authority:
        key = make_identity(label)
        if not self.bank.exists(key):
            self.bank.open_account(key, owner=key)
        if lamports:
            self.bank.mint_to(key, lamports)
        return Authority(key, is_signer=True)

    def player(self, label: str, sol: int = 10) -> Authority:
        return self.account(label, sol * LAMPORTS_PER_SOL)

    def start_round(self) -> int:
        return self.processor.initiate_round(self.creator, VERSION)

    def buy(self, player: Authority, amount: int, team: int = 1, referrer: str | None = None) -> PurchaseReceipt:
        return self.processor.purchase_keys(player, VERSION, amount, team, referrer)

    def round(self, round_id: int | None = None) -> RoundState:
        if round_id is None:
            round_id = self.processor.get_game(VERSION).round_id
        return self.processor.get_round(round_id, VERSION)

    def player_round(self, player: Authority, round_id: int = 1) -> PlayerRoundState:
        return self.processor.get_player_round(player.key, round_id, VERSION)

    def has_player_round(self, player: Authority, round_id: int = 1) -> bool:
        seed = player_round_state_seed(player.key, round_id, VERSION)
        return self.host.records.exists(self.host.records.address_for(seed))

    def write_round(self, round_state: RoundState) -> None:
        handle = self.host.records.address_for(round_state_seed(round_state.round_id, VERSION))
        self.host.records.write(handle, self.host.records.program_id, round_state.pack())

    def expire(self) -> None:
        end_time = self.round().end_time
        self.clock.set(end_time + 1)

    def pot_balance(self, round_id: int = 1) -> int:
        return self.bank.balance(self.processor.pot_address(round_id, VERSION))


@pytest.fixture
def game() -> GameFixture:
    return GameFixture()


@pytest.fixture
def started(game: GameFixture) -> GameFixture:
    game.start_round()
    return game
