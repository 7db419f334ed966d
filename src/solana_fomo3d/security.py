from __future__ import annotations

import logging

from .bank import Authority, Bank
from .errors import AuthorizationError, ErrorCode, InvariantViolation
from .state import RoundState

log = logging.getLogger(__name__)


def verify_round_state(round_state: RoundState) -> None:
    """
    Checks that the round's pool totals add up to the money put into its pot,
    and that no pool has paid out more than it ever held.

    Compared against the accumulated pot rather than the live pot balance:
    withdrawals and stray deposits move the balance without touching pools.
    """
    supposed = round_state.pool_total()
    if supposed != round_state.accum_sol_pot:
        log.error(
            "Round %d pools sum to %d but pot is %d",
            round_state.round_id, supposed, round_state.accum_sol_pot,
        )
        raise InvariantViolation(
            ErrorCode.POOL_MISMATCH,
            f"round {round_state.round_id}: pools {supposed} != pot {round_state.accum_sol_pot}",
        )

    paid_out = [
        (pool, getattr(round_state, pool), getattr(round_state, withdrawn))
        for pool, withdrawn in round_state.WITHDRAWABLE
    ]
    paid_out.append((
        "accum_airdrop_share",
        round_state.accum_airdrop_share,
        round_state.airdrop_awarded + round_state.carried_airdrop,
    ))
    for pool, accumulated, withdrawn in paid_out:
        if withdrawn > accumulated:
            log.error(
                "Round %d paid %d out of %s holding %d",
                round_state.round_id, withdrawn, pool, accumulated,
            )
            raise InvariantViolation(
                ErrorCode.OVERDRAWN_POOL,
                f"round {round_state.round_id}: {withdrawn} paid from {pool} of {accumulated}",
            )


def verify_is_signer(authority: Authority) -> None:
    if not authority.is_signer:
        raise AuthorizationError(
            ErrorCode.MISSING_SIGNATURE, f"{authority.key} must sign this instruction"
        )


def verify_privileged_wallet(bank: Bank, expected_wallet: str, wallet: str, authority: Authority) -> None:
    """The right wallet was passed, and the transaction comes from its owner."""
    if wallet != expected_wallet:
        raise AuthorizationError(
            ErrorCode.WRONG_PRIVILEGED_WALLET,
            f"Wallet {wallet} is not the configured {expected_wallet}",
        )
    owner = bank.owner_of(wallet)
    if owner != authority.key:
        raise AuthorizationError(
            ErrorCode.INVALID_OWNER, f"Wallet {wallet} is owned by {owner}, not {authority.key}"
        )
    verify_is_signer(authority)
