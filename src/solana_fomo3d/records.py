"""
Seed-addressed record store.

Records live at addresses derived from a semantic seed and the program id,
so anyone can recompute where a record must be. Ownership is checked
explicitly: `verify` hands back a signer token for the derived address,
which is what lets the program move funds out of accounts it owns.
"""

from __future__ import annotations

import copy
import hashlib
import logging
from dataclasses import dataclass
from typing import Dict

import base58

from .bank import Authority
from .errors import ErrorCode, RecordError
from .project_constants import (
    GAME_STATE_SEED,
    PLAYER_ROUND_STATE_SEED,
    POT_SEED,
    ROUND_STATE_SEED,
)

log = logging.getLogger(__name__)

PDA_MARKER = b"ProgramDerivedAddress"


def derive_address(seed: str, program_id: str) -> str:
    digest = hashlib.sha256(
        seed.encode("utf-8") + program_id.encode("utf-8") + PDA_MARKER
    ).digest()
    return base58.b58encode(digest).decode("ascii")


def make_identity(label: str) -> str:
    """Deterministic public key for a human-readable label."""
    return base58.b58encode(hashlib.sha256(label.encode("utf-8")).digest()).decode("ascii")


def game_state_seed(version: int) -> str:
    return f"{GAME_STATE_SEED}{version}"


def round_state_seed(round_id: int, version: int) -> str:
    return f"{ROUND_STATE_SEED}{round_id}{version}"


def pot_seed(round_id: int, version: int) -> str:
    return f"{POT_SEED}{round_id}{version}"


def player_round_state_seed(player: str, round_id: int, version: int) -> str:
    # half the key is hard enough to collide with
    return f"{PLAYER_ROUND_STATE_SEED}{player[:16]}{round_id}{version}"


@dataclass
class Record:
    owner: str
    data: bytes


class RecordStore:
    def __init__(self, program_id: str) -> None:
        self.program_id = program_id
        self._records: Dict[str, Record] = {}

    def address_for(self, seed: str) -> str:
        return derive_address(seed, self.program_id)

    def create(self, seed: str, size: int, owner: str) -> str:
        handle = self.address_for(seed)
        if handle in self._records:
            raise RecordError(
                ErrorCode.ALREADY_INITIALIZED, f"Record {handle} ({seed}) already exists"
            )
        self._records[handle] = Record(owner=owner, data=bytes(size))
        log.debug("Created record %s for seed %s (%d bytes)", handle, seed, size)
        return handle

    def verify(self, seed: str, handle: str) -> Authority:
        expected = self.address_for(seed)
        if expected != handle:
            raise RecordError(
                ErrorCode.ADDRESS_MISMATCH,
                f"Derived address doesn't match: {expected} vs {handle}",
            )
        return Authority(key=handle, is_signer=True)

    def exists(self, handle: str) -> bool:
        return handle in self._records

    def read(self, handle: str, owner: str) -> bytes:
        record = self._get(handle)
        if record.owner != owner:
            raise RecordError(
                ErrorCode.WRONG_RECORD,
                f"Record {handle} is owned by {record.owner}, expected {owner}",
            )
        return record.data

    def write(self, handle: str, owner: str, data: bytes) -> None:
        record = self._get(handle)
        if record.owner != owner:
            raise RecordError(
                ErrorCode.WRONG_RECORD,
                f"Record {handle} is owned by {record.owner}, expected {owner}",
            )
        if len(data) != len(record.data):
            raise RecordError(
                ErrorCode.WRONG_RECORD,
                f"Record {handle} holds {len(record.data)} bytes, got {len(data)}",
            )
        record.data = bytes(data)

    def snapshot(self) -> Dict[str, Record]:
        return copy.deepcopy(self._records)

    def restore(self, snapshot: Dict[str, Record]) -> None:
        self._records = snapshot

    def _get(self, handle: str) -> Record:
        try:
            return self._records[handle]
        except KeyError:
            raise RecordError(ErrorCode.RECORD_MISSING, f"No record at {handle}") from None
