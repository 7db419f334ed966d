from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from .airdrop import AirdropOutcome, play_airdrop
from .bank import Authority
from .checked import try_add, try_cast, try_sub
from .curve import keys_received
from .errors import (
    BusinessRuleError,
    ErrorCode,
    GameError,
    InstructionResult,
    RecordError,
)
from .fees import PurchaseSplit, SettlementSplit, rollover_pot, split_pot, split_purchase
from .host import Host
from .instruction import (
    EndRound,
    GameInstruction,
    InitiateGame,
    InitiateRound,
    PurchaseKeys,
    WithdrawCommunityRewards,
    WithdrawDividendBRewards,
    WithdrawSol,
)
from .ledger import owed_to_player, record_withdrawal
from .project_constants import (
    EARLY_POT_THRESHOLD,
    PLAYER_EARLY_CAP,
    ROUND_INC_TIME,
    ROUND_INIT_TIME,
    ROUND_MAX_TIME,
)
from .records import (
    game_state_seed,
    player_round_state_seed,
    pot_seed,
    round_state_seed,
)
from .security import verify_is_signer, verify_privileged_wallet, verify_round_state
from .state import (
    GAME_STATE_SIZE,
    PLAYER_ROUND_STATE_SIZE,
    ROUND_STATE_SIZE,
    NULL_KEY,
    FixedRecord,
    GameState,
    PlayerRoundState,
    RoundState,
    pubkey_to_bytes,
)
from .teams import split_for, team_from_code

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurchaseReceipt:
    round_id: int
    amount: int  # lamports actually taken, after the early-round cap
    keys: int
    team: int
    split: PurchaseSplit
    airdrop: AirdropOutcome
    end_time: int


def capped_contribution(accum_sol_pot: int, already_added: int, amount: int) -> int:
    """While the pot is small, each player may only put in 1 SOL per round."""
    if accum_sol_pot < EARLY_POT_THRESHOLD and try_add(already_added, amount) > PLAYER_EARLY_CAP:
        if already_added >= PLAYER_EARLY_CAP:
            return 0
        return try_sub(PLAYER_EARLY_CAP, already_added)
    return amount


def extended_end_time(round_state: RoundState, inc_time: int, max_time: int) -> int:
    cap = try_add(round_state.start_time, max_time, bits=64)
    return max(round_state.end_time, min(try_add(round_state.end_time, inc_time, bits=64), cap))


def timer_expired(round_state: RoundState, now: int) -> bool:
    return now > round_state.end_time


class Processor:
    def __init__(self, host: Host) -> None:
        self.host = host
        self._handlers: Dict[type, Callable[[Authority, Any], Any]] = {
            InitiateGame: self._dispatch_initiate_game,
            InitiateRound: lambda caller, ix: self.initiate_round(caller, ix.version),
            PurchaseKeys: lambda caller, ix: self.purchase_keys(
                caller, ix.version, ix.amount, ix.team, ix.referrer
            ),
            WithdrawSol: lambda caller, ix: self.withdraw_sol(caller, ix.version, ix.round_id),
            EndRound: lambda caller, ix: self.end_round(ix.version),
            WithdrawCommunityRewards: lambda caller, ix: self.withdraw_community_rewards(
                caller, ix.version, ix.round_id, ix.wallet
            ),
            WithdrawDividendBRewards: lambda caller, ix: self.withdraw_dividend_b_rewards(
                caller, ix.version, ix.round_id, ix.wallet
            ),
        }

    @property
    def program_id(self) -> str:
        return self.host.records.program_id

    def process_instruction(self, caller: Authority, instruction: GameInstruction) -> InstructionResult:
        handler = self._handlers.get(type(instruction))
        if handler is None:
            raise TypeError(f"Unknown instruction: {instruction!r}")
        log.debug("Processing %s from %s", type(instruction).__name__, caller.key)
        try:
            return InstructionResult.success(handler(caller, instruction))
        except GameError as e:
            log.warning("%s failed: [%s/%s] %s", type(instruction).__name__, e.kind.value, e.code.name, e)
            return InstructionResult.failure(e)

    def _dispatch_initiate_game(self, caller: Authority, ix: InitiateGame) -> str:
        return self.initiate_game(
            caller,
            ix.version,
            ix.community_wallet,
            ix.dividend_b_wallet,
            round_init_time=ix.round_init_time,
            round_inc_time=ix.round_inc_time,
            round_max_time=ix.round_max_time,
        )

    # --------------------------------------- operations

    def initiate_game(
        self,
        creator: Authority,
        version: int,
        community_wallet: str,
        dividend_b_wallet: str,
        round_init_time: int = ROUND_INIT_TIME,
        round_inc_time: int = ROUND_INC_TIME,
        round_max_time: int = ROUND_MAX_TIME,
    ) -> str:
        with self.host.atomic():
            verify_is_signer(creator)
            if not (0 < round_init_time <= round_max_time and 0 < round_inc_time <= round_max_time):
                raise BusinessRuleError(
                    ErrorCode.INVALID_PARAMETERS,
                    f"Bad timers: init={round_init_time} inc={round_inc_time} max={round_max_time}",
                )
            # both wallets must already be accounts of this mint
            self.host.bank.owner_of(community_wallet)
            self.host.bank.owner_of(dividend_b_wallet)

            handle = self.host.records.create(
                game_state_seed(version), GAME_STATE_SIZE, self.program_id
            )
            game = GameState(
                version=try_cast(version, 8),
                round_id=0,
                round_init_time=round_init_time,
                round_inc_time=round_inc_time,
                round_max_time=round_max_time,
                mint=self.host.bank.mint,
                game_creator=creator.key,
                community_wallet=community_wallet,
                dividend_b_wallet=dividend_b_wallet,
            )
            self._save(handle, game)
            log.info("Game v%d initiated by %s at %s", version, creator.key, handle)
            return handle

    def initiate_round(self, funder: Authority, version: int) -> int:
        with self.host.atomic():
            verify_is_signer(funder)
            game_handle, game, game_signer = self._load_game(version)

            previous: Optional[RoundState] = None
            if game.round_id > 0:
                previous_handle, previous = self._load_round(game.round_id, version)
                if not previous.ended:
                    raise BusinessRuleError(
                        ErrorCode.PREVIOUS_ROUND_ACTIVE,
                        f"Round {game.round_id} has not been settled yet",
                    )

            game.round_id = try_add(game.round_id, 1, bits=64)
            round_handle = self.host.records.create(
                round_state_seed(game.round_id, version), ROUND_STATE_SIZE, self.program_id
            )
            pot = self._pot_address(game.round_id, version)
            self.host.bank.open_account(pot, owner=game_handle)

            now = self.host.clock.now()
            round_state = RoundState(
                round_id=game.round_id,
                start_time=now,
                end_time=try_add(now, min(game.round_init_time, game.round_max_time), bits=64),
            )

            if previous is not None:
                carry = self._carry_over(previous, pot, version, game_signer)
                round_state.accum_sol_pot = carry
                round_state.accum_prize_share = carry
                self._save(previous_handle, previous)

            verify_round_state(round_state)
            self._save(round_handle, round_state)
            self._save(game_handle, game)
            log.info(
                "Round %d started at %d, ends at %d", game.round_id, round_state.start_time, round_state.end_time
            )
            return game.round_id

    def purchase_keys(
        self,
        player: Authority,
        version: int,
        amount: int,
        team_code: int,
        referrer: Optional[str] = None,
    ) -> PurchaseReceipt:
        with self.host.atomic():
            verify_is_signer(player)
            amount = try_cast(amount)
            game_handle, game, _ = self._load_game(version)
            round_handle, round_state = self._load_round(game.round_id, version)

            sample = self.host.clock.sample()
            if round_state.ended or timer_expired(round_state, sample.unix_timestamp):
                raise BusinessRuleError(
                    ErrorCode.ROUND_ENDED, f"Round {round_state.round_id} is over"
                )

            player_handle, player_round = self._load_or_create_player_round(
                player.key, game.round_id, version
            )
            if referrer is not None and referrer != NULL_KEY:
                if referrer == player.key:
                    raise BusinessRuleError(
                        ErrorCode.INVALID_PARAMETERS, "Players cannot refer themselves"
                    )
                pubkey_to_bytes(referrer)
                player_round.last_referrer = referrer

            amount = capped_contribution(round_state.accum_sol_pot, player_round.accum_sol_added, amount)
            team = team_from_code(team_code)
            team_split = split_for(team)

            # One whole key minimum: about 75_000 lamports at round start,
            # rising to roughly 1.25 SOL at the top of the curve.
            new_keys = keys_received(round_state.accum_sol_pot, amount)
            if new_keys < 1:
                raise BusinessRuleError(
                    ErrorCode.PURCHASE_TOO_SMALL,
                    f"{amount} lamports buys no whole key at pot {round_state.accum_sol_pot}",
                )

            pot = self._pot_address(game.round_id, version)
            self.host.bank.transfer(player.key, pot, player, try_cast(amount))

            # --------------------------------------- airdrop lottery
            # plays for the pool as it stood before this purchase
            airdrop = play_airdrop(
                player.key,
                sample,
                amount,
                round_state.airdrop_tracker,
                round_state.unawarded_airdrop,
            )
            round_state.airdrop_tracker = airdrop.tracker
            if airdrop.won:
                round_state.airdrop_awarded = try_add(round_state.airdrop_awarded, airdrop.prize)
                player_round.accum_winnings = try_add(player_round.accum_winnings, airdrop.prize)

            # --------------------------------------- shares
            split = split_purchase(amount, team_split, player_round.has_referrer)
            if split.affiliate > 0:
                affiliate_handle, affiliate_round = self._load_or_create_player_round(
                    player_round.last_referrer, game.round_id, version
                )
                affiliate_round.accum_aff = try_add(affiliate_round.accum_aff, split.affiliate)
                self._save(affiliate_handle, affiliate_round)

            # --------------------------------------- round state
            round_state.lead_player = player.key
            round_state.lead_player_team = int(team)
            round_state.end_time = extended_end_time(
                round_state, game.round_inc_time, game.round_max_time
            )
            round_state.accum_keys = try_add(round_state.accum_keys, new_keys)
            round_state.accum_sol_pot = try_add(round_state.accum_sol_pot, amount)
            round_state.accum_sol_by_team[team] = try_add(round_state.accum_sol_by_team[team], amount)
            self._add_shares(round_state, split)
            verify_round_state(round_state)
            self._save(round_handle, round_state)

            # --------------------------------------- player state
            player_round.accum_keys = try_add(player_round.accum_keys, new_keys)
            player_round.accum_sol_added = try_add(player_round.accum_sol_added, amount)
            self._save(player_handle, player_round)

            log.info(
                "Round %d: %s bought %d keys for %d lamports (team %s), timer now %d",
                game.round_id, player.key, new_keys, amount, team.name, round_state.end_time,
            )
            return PurchaseReceipt(
                round_id=game.round_id,
                amount=amount,
                keys=new_keys,
                team=int(team),
                split=split,
                airdrop=airdrop,
                end_time=round_state.end_time,
            )

    def withdraw_sol(self, player: Authority, version: int, round_id: int) -> int:
        """
        Pays out everything the player is owed for a round.

        No need to wait for the round to end: airdrop winnings, affiliate
        earnings and dividends are withdrawable as they accrue.
        """
        with self.host.atomic():
            verify_is_signer(player)
            _, _, game_signer = self._load_game(version)
            round_handle, round_state = self._load_round(round_id, version)
            seed = player_round_state_seed(player.key, round_id, version)
            if not self.host.records.exists(self.host.records.address_for(seed)):
                # never played or referred anyone this round
                return 0
            player_handle, player_round = self._load_player_round(player.key, round_id, version)

            owed = owed_to_player(player_round, round_state)
            total = owed.total
            log.debug("Owed to %s for round %d: %s", player.key, round_id, owed)
            if total == 0:
                return 0

            self.host.bank.transfer(
                self._pot_address(round_id, version), player.key, game_signer, try_cast(total)
            )
            record_withdrawal(player_round, round_state, owed)
            verify_round_state(round_state)
            self._save(round_handle, round_state)
            self._save(player_handle, player_round)
            log.info("Round %d: paid %d to %s", round_id, total, player.key)
            return total

    def end_round(self, version: int) -> SettlementSplit:
        with self.host.atomic():
            _, game, _ = self._load_game(version)
            round_handle, round_state = self._load_round(game.round_id, version)

            if round_state.ended:
                raise BusinessRuleError(
                    ErrorCode.ROUND_ENDED, f"Round {round_state.round_id} is already settled"
                )
            if not timer_expired(round_state, self.host.clock.now()):
                raise BusinessRuleError(
                    ErrorCode.ROUND_NOT_ENDED,
                    f"Round {round_state.round_id} runs until {round_state.end_time}",
                )

            to_be_divided = round_state.accum_prize_share
            if round_state.has_leader:
                settlement = split_pot(to_be_divided, split_for(round_state.team))
                winner_handle, winner_round = self._load_player_round(
                    round_state.lead_player, game.round_id, version
                )
                winner_round.accum_winnings = try_add(winner_round.accum_winnings, settlement.grand_prize)
                self._save(winner_handle, winner_round)
            else:
                settlement = rollover_pot(to_be_divided)

            round_state.ended = True
            round_state.accum_community_share = try_add(round_state.accum_community_share, settlement.community)
            round_state.accum_dividend_a_share = try_add(round_state.accum_dividend_a_share, settlement.dividend_a)
            round_state.accum_dividend_b_share = try_add(round_state.accum_dividend_b_share, settlement.dividend_b)
            round_state.accum_next_round_share = try_add(round_state.accum_next_round_share, settlement.next_round)
            round_state.accum_prize_share = settlement.grand_prize
            verify_round_state(round_state)
            self._save(round_handle, round_state)

            log.info(
                "Round %d settled: %d to %s, %d to next round",
                round_state.round_id, settlement.grand_prize, round_state.lead_player, settlement.next_round,
            )
            return settlement

    def withdraw_community_rewards(
        self, authority: Authority, version: int, round_id: int, wallet: str
    ) -> int:
        return self._withdraw_privileged(
            authority, version, round_id, wallet,
            wallet_field="community_wallet",
            accum_field="accum_community_share",
            withdrawn_field="withdrawn_community",
        )

    def withdraw_dividend_b_rewards(
        self, authority: Authority, version: int, round_id: int, wallet: str
    ) -> int:
        return self._withdraw_privileged(
            authority, version, round_id, wallet,
            wallet_field="dividend_b_wallet",
            accum_field="accum_dividend_b_share",
            withdrawn_field="withdrawn_dividend_b",
        )

    def _withdraw_privileged(
        self,
        authority: Authority,
        version: int,
        round_id: int,
        wallet: str,
        wallet_field: str,
        accum_field: str,
        withdrawn_field: str,
    ) -> int:
        with self.host.atomic():
            _, game, game_signer = self._load_game(version)
            round_handle, round_state = self._load_round(round_id, version)
            verify_privileged_wallet(self.host.bank, getattr(game, wallet_field), wallet, authority)

            accumulated = getattr(round_state, accum_field)
            amount = try_sub(accumulated, getattr(round_state, withdrawn_field))
            if amount == 0:
                return 0

            self.host.bank.transfer(
                self._pot_address(round_id, version), wallet, game_signer, try_cast(amount)
            )
            setattr(round_state, withdrawn_field, accumulated)
            self._save(round_handle, round_state)
            log.info("Round %d: paid %d to %s", round_id, amount, wallet)
            return amount

    # --------------------------------------- read-only views

    def get_game(self, version: int) -> GameState:
        return self._load_game(version)[1]

    def get_round(self, round_id: int, version: int) -> RoundState:
        return self._load_round(round_id, version)[1]

    def get_player_round(self, player: str, round_id: int, version: int) -> PlayerRoundState:
        return self._load_player_round(player, round_id, version)[1]

    def pot_address(self, round_id: int, version: int) -> str:
        return self._pot_address(round_id, version)

    # --------------------------------------- helpers

    def _pot_address(self, round_id: int, version: int) -> str:
        return self.host.records.address_for(pot_seed(round_id, version))

    def _carry_over(self, previous: RoundState, pot: str, version: int, game_signer: Authority) -> int:
        """
        Moves the previous round's unclaimed next-round pool, then its
        unawarded airdrop, into the new round's pot.

        Never moves more than the old pot holds, so a short pot carries
        less instead of blocking the new round.
        """
        source = self._pot_address(previous.round_id, version)
        available = self.host.bank.balance(source)
        next_round = min(
            try_sub(previous.accum_next_round_share, previous.withdrawn_next_round), available
        )
        airdrop = min(previous.unawarded_airdrop, try_sub(available, next_round))
        carry = try_add(next_round, airdrop)
        if carry == 0:
            return 0

        owed = try_add(
            try_sub(previous.accum_next_round_share, previous.withdrawn_next_round),
            previous.unawarded_airdrop,
        )
        if carry < owed:
            log.warning(
                "Round %d pot holds %d, carrying %d of %d", previous.round_id, available, carry, owed
            )

        self.host.bank.transfer(source, pot, game_signer, try_cast(carry))
        previous.withdrawn_next_round = try_add(previous.withdrawn_next_round, next_round)
        previous.carried_airdrop = try_add(previous.carried_airdrop, airdrop)
        verify_round_state(previous)
        log.info(
            "Carried %d (%d next-round, %d airdrop) from round %d",
            carry, next_round, airdrop, previous.round_id,
        )
        return carry

    def _load_game(self, version: int) -> Tuple[str, GameState, Authority]:
        seed = game_state_seed(version)
        handle = self.host.records.address_for(seed)
        signer = self.host.records.verify(seed, handle)
        game = GameState.unpack(self.host.records.read(handle, owner=self.program_id))
        if game.version != version:
            raise RecordError(ErrorCode.WRONG_RECORD, f"Record {handle} holds game v{game.version}")
        return handle, game, signer

    def _load_round(self, round_id: int, version: int) -> Tuple[str, RoundState]:
        if round_id == 0:
            raise BusinessRuleError(ErrorCode.NO_ACTIVE_ROUND, "No round has been started yet")
        seed = round_state_seed(round_id, version)
        handle = self.host.records.address_for(seed)
        self.host.records.verify(seed, handle)
        round_state = RoundState.unpack(self.host.records.read(handle, owner=self.program_id))
        if round_state.round_id != round_id:
            raise RecordError(ErrorCode.WRONG_RECORD, f"Record {handle} holds round {round_state.round_id}")
        return handle, round_state

    def _load_player_round(self, player: str, round_id: int, version: int) -> Tuple[str, PlayerRoundState]:
        seed = player_round_state_seed(player, round_id, version)
        handle = self.host.records.address_for(seed)
        self.host.records.verify(seed, handle)
        player_round = PlayerRoundState.unpack(self.host.records.read(handle, owner=self.program_id))
        if player_round.player != player or player_round.round_id != round_id:
            raise RecordError(
                ErrorCode.WRONG_RECORD,
                f"Record {handle} belongs to {player_round.player} round {player_round.round_id}",
            )
        return handle, player_round

    def _load_or_create_player_round(
        self, player: str, round_id: int, version: int
    ) -> Tuple[str, PlayerRoundState]:
        seed = player_round_state_seed(player, round_id, version)
        handle = self.host.records.address_for(seed)
        if self.host.records.exists(handle):
            return self._load_player_round(player, round_id, version)
        self.host.records.create(seed, PLAYER_ROUND_STATE_SIZE, self.program_id)
        player_round = PlayerRoundState(player=player, round_id=round_id)
        self._save(handle, player_round)
        return handle, player_round

    def _save(self, handle: str, record: FixedRecord) -> None:
        self.host.records.write(handle, self.program_id, record.pack())

    @staticmethod
    def _add_shares(round_state: RoundState, split: PurchaseSplit) -> None:
        round_state.accum_community_share = try_add(round_state.accum_community_share, split.community)
        round_state.accum_airdrop_share = try_add(round_state.accum_airdrop_share, split.airdrop)
        round_state.accum_next_round_share = try_add(round_state.accum_next_round_share, split.next_round)
        round_state.accum_aff_share = try_add(round_state.accum_aff_share, split.affiliate)
        round_state.accum_dividend_a_share = try_add(round_state.accum_dividend_a_share, split.dividend_a)
        round_state.accum_dividend_b_share = try_add(round_state.accum_dividend_b_share, split.dividend_b)
        round_state.accum_prize_share = try_add(round_state.accum_prize_share, split.prize)
