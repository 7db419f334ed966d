from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Dict

from .errors import (
    AuthorizationError,
    BusinessRuleError,
    ErrorCode,
    RecordError,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Authority:
    """A key acting on an operation, and whether it signed for it."""

    key: str
    is_signer: bool = False


@dataclass
class TokenAccount:
    address: str
    owner: str
    amount: int = 0


class Bank:
    """In-memory value-transfer ledger for a single currency mint."""

    def __init__(self, mint: str) -> None:
        self.mint = mint
        self._accounts: Dict[str, TokenAccount] = {}

    def open_account(self, address: str, owner: str) -> TokenAccount:
        if address in self._accounts:
            raise RecordError(
                ErrorCode.ALREADY_INITIALIZED, f"Token account {address} already exists"
            )
        account = TokenAccount(address=address, owner=owner)
        self._accounts[address] = account
        return account

    def exists(self, address: str) -> bool:
        return address in self._accounts

    def owner_of(self, address: str) -> str:
        return self._get(address).owner

    def balance(self, address: str) -> int:
        return self._get(address).amount

    def mint_to(self, address: str, amount: int) -> None:
        if amount < 0:
            raise BusinessRuleError(ErrorCode.INVALID_PARAMETERS, "Negative mint amount")
        self._get(address).amount += amount

    def transfer(
        self, source: str, destination: str, authority: Authority, amount: int
    ) -> None:
        src = self._get(source)
        dst = self._get(destination)
        if not authority.is_signer:
            raise AuthorizationError(
                ErrorCode.MISSING_SIGNATURE, f"{authority.key} did not sign the transfer"
            )
        if src.owner != authority.key:
            raise AuthorizationError(
                ErrorCode.INVALID_OWNER,
                f"Account {source} is owned by {src.owner}, not {authority.key}",
            )
        if amount < 0 or amount > src.amount:
            raise BusinessRuleError(
                ErrorCode.TRANSFER_FAILED,
                f"Cannot move {amount} from {source} holding {src.amount}",
            )
        src.amount -= amount
        dst.amount += amount
        log.debug("Transferred %d from %s to %s", amount, source, destination)

    def snapshot(self) -> Dict[str, TokenAccount]:
        return copy.deepcopy(self._accounts)

    def restore(self, snapshot: Dict[str, TokenAccount]) -> None:
        self._accounts = snapshot

    def _get(self, address: str) -> TokenAccount:
        try:
            return self._accounts[address]
        except KeyError:
            raise RecordError(
                ErrorCode.RECORD_MISSING, f"No token account at {address}"
            ) from None
