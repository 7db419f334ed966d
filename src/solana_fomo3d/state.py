"""
Game records and their fixed-width byte layout.

Every record is a little-endian struct of u8 / u64 / u128 words and
32-byte public keys. Public keys are carried as base58 strings in Python
and packed as raw bytes. u128 values are stored as (low, high) u64 pairs.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field, fields
from typing import ClassVar, Dict, List, Tuple

import base58

from .checked import try_add, try_cast
from .errors import ErrorCode, RecordError
from .teams import Team

PUBKEY_LEN = 32
NULL_KEY = base58.b58encode(bytes(PUBKEY_LEN)).decode("ascii")

_WORD_SIZES = {"u8": 1, "bool": 1, "u64": 8, "u128": 16, "pubkey": PUBKEY_LEN}

# (field name, word type, repeat count)
Layout = Tuple[Tuple[str, str, int], ...]


def pubkey_to_bytes(key: str) -> bytes:
    try:
        raw = base58.b58decode(key)
    except ValueError as e:
        raise RecordError(ErrorCode.WRONG_RECORD, f"Not a base58 public key: {key!r}") from e
    if len(raw) != PUBKEY_LEN:
        raise RecordError(
            ErrorCode.WRONG_RECORD, f"Public key {key!r} decodes to {len(raw)} bytes"
        )
    return raw


def pubkey_from_bytes(raw: bytes) -> str:
    return base58.b58encode(raw).decode("ascii")


def layout_size(layout: Layout) -> int:
    return sum(_WORD_SIZES[kind] * count for _, kind, count in layout)


def _pack_word(kind: str, value) -> bytes:
    if kind == "pubkey":
        return pubkey_to_bytes(value)
    if kind == "bool":
        return struct.pack("<B", 1 if value else 0)
    if kind == "u8":
        return struct.pack("<B", try_cast(int(value), 8))
    if kind == "u64":
        return struct.pack("<Q", try_cast(value, 64))
    value = try_cast(value, 128)
    return struct.pack("<QQ", value & 0xFFFFFFFFFFFFFFFF, value >> 64)


def _unpack_word(kind: str, data: bytes, offset: int):
    if kind == "pubkey":
        return pubkey_from_bytes(data[offset : offset + PUBKEY_LEN])
    if kind == "bool":
        return struct.unpack_from("<B", data, offset)[0] != 0
    if kind == "u8":
        return struct.unpack_from("<B", data, offset)[0]
    if kind == "u64":
        return struct.unpack_from("<Q", data, offset)[0]
    lo, hi = struct.unpack_from("<QQ", data, offset)
    return lo | (hi << 64)


class FixedRecord:
    LAYOUT: ClassVar[Layout] = ()

    @classmethod
    def size(cls) -> int:
        return layout_size(cls.LAYOUT)

    def pack(self) -> bytes:
        out = bytearray()
        for name, kind, count in self.LAYOUT:
            value = getattr(self, name)
            if count == 1:
                out += _pack_word(kind, value)
            else:
                if len(value) != count:
                    raise RecordError(
                        ErrorCode.WRONG_RECORD, f"{name} must hold {count} values"
                    )
                for item in value:
                    out += _pack_word(kind, item)
        return bytes(out)

    @classmethod
    def unpack(cls, data: bytes):
        if len(data) != cls.size():
            raise RecordError(
                ErrorCode.WRONG_RECORD,
                f"{cls.__name__} expects {cls.size()} bytes, got {len(data)}",
            )
        values: Dict[str, object] = {}
        offset = 0
        for name, kind, count in cls.LAYOUT:
            step = _WORD_SIZES[kind]
            if count == 1:
                values[name] = _unpack_word(kind, data, offset)
                offset += step
            else:
                items = []
                for _ in range(count):
                    items.append(_unpack_word(kind, data, offset))
                    offset += step
                values[name] = items
        return cls(**values)

    def to_dict(self) -> Dict[str, object]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class GameState(FixedRecord):
    version: int = 0
    round_id: int = 0  # incremented to 1 when the first round starts
    round_init_time: int = 0
    round_inc_time: int = 0
    round_max_time: int = 0
    mint: str = NULL_KEY
    game_creator: str = NULL_KEY
    community_wallet: str = NULL_KEY
    dividend_b_wallet: str = NULL_KEY

    LAYOUT: ClassVar[Layout] = (
        ("version", "u8", 1),
        ("round_id", "u64", 1),
        ("round_init_time", "u64", 1),
        ("round_inc_time", "u64", 1),
        ("round_max_time", "u64", 1),
        ("mint", "pubkey", 1),
        ("game_creator", "pubkey", 1),
        ("community_wallet", "pubkey", 1),
        ("dividend_b_wallet", "pubkey", 1),
    )


@dataclass
class RoundState(FixedRecord):
    round_id: int = 0
    lead_player: str = NULL_KEY
    lead_player_team: int = int(Team.WHALE)
    start_time: int = 0
    end_time: int = 0
    ended: bool = False
    accum_keys: int = 0
    accum_sol_pot: int = 0
    accum_sol_by_team: List[int] = field(default_factory=lambda: [0] * len(Team))
    # the seven pools; they always sum to accum_sol_pot
    accum_community_share: int = 0
    accum_airdrop_share: int = 0
    accum_next_round_share: int = 0
    accum_aff_share: int = 0
    accum_dividend_a_share: int = 0
    accum_dividend_b_share: int = 0
    accum_prize_share: int = 0
    airdrop_tracker: int = 0
    airdrop_awarded: int = 0
    withdrawn_community: int = 0
    withdrawn_dividend_b: int = 0
    withdrawn_next_round: int = 0
    withdrawn_dividend_a: int = 0  # summed over all players
    carried_airdrop: int = 0  # unawarded airdrop moved into the next round

    LAYOUT: ClassVar[Layout] = (
        ("round_id", "u64", 1),
        ("lead_player", "pubkey", 1),
        ("lead_player_team", "u8", 1),
        ("start_time", "u64", 1),
        ("end_time", "u64", 1),
        ("ended", "bool", 1),
        ("accum_keys", "u128", 1),
        ("accum_sol_pot", "u128", 1),
        ("accum_sol_by_team", "u128", len(Team)),
        ("accum_community_share", "u128", 1),
        ("accum_airdrop_share", "u128", 1),
        ("accum_next_round_share", "u128", 1),
        ("accum_aff_share", "u128", 1),
        ("accum_dividend_a_share", "u128", 1),
        ("accum_dividend_b_share", "u128", 1),
        ("accum_prize_share", "u128", 1),
        ("airdrop_tracker", "u64", 1),
        ("airdrop_awarded", "u128", 1),
        ("withdrawn_community", "u128", 1),
        ("withdrawn_dividend_b", "u128", 1),
        ("withdrawn_next_round", "u128", 1),
        ("withdrawn_dividend_a", "u128", 1),
        ("carried_airdrop", "u128", 1),
    )

    POOLS: ClassVar[Tuple[str, ...]] = (
        "accum_community_share",
        "accum_airdrop_share",
        "accum_next_round_share",
        "accum_aff_share",
        "accum_dividend_a_share",
        "accum_dividend_b_share",
        "accum_prize_share",
    )

    # pool -> amount already paid out of it
    WITHDRAWABLE: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("accum_community_share", "withdrawn_community"),
        ("accum_next_round_share", "withdrawn_next_round"),
        ("accum_dividend_a_share", "withdrawn_dividend_a"),
        ("accum_dividend_b_share", "withdrawn_dividend_b"),
    )

    @property
    def has_leader(self) -> bool:
        return self.lead_player != NULL_KEY

    @property
    def team(self) -> Team:
        return Team(self.lead_player_team)

    @property
    def unawarded_airdrop(self) -> int:
        return self.accum_airdrop_share - self.airdrop_awarded - self.carried_airdrop

    @property
    def unpaid_dividend_a(self) -> int:
        return self.accum_dividend_a_share - self.withdrawn_dividend_a

    def pool_total(self) -> int:
        total = 0
        for name in self.POOLS:
            total = try_add(total, getattr(self, name))
        return total


@dataclass
class PlayerRoundState(FixedRecord):
    player: str = NULL_KEY
    round_id: int = 0
    last_referrer: str = NULL_KEY
    accum_keys: int = 0
    accum_sol_added: int = 0
    accum_winnings: int = 0  # airdrops + grand prize
    accum_aff: int = 0
    withdrawn_winnings: int = 0
    withdrawn_aff: int = 0
    withdrawn_dividend_a: int = 0

    LAYOUT: ClassVar[Layout] = (
        ("player", "pubkey", 1),
        ("round_id", "u64", 1),
        ("last_referrer", "pubkey", 1),
        ("accum_keys", "u128", 1),
        ("accum_sol_added", "u128", 1),
        ("accum_winnings", "u128", 1),
        ("accum_aff", "u128", 1),
        ("withdrawn_winnings", "u128", 1),
        ("withdrawn_aff", "u128", 1),
        ("withdrawn_dividend_a", "u128", 1),
    )

    @property
    def has_referrer(self) -> bool:
        return self.last_referrer != NULL_KEY


GAME_STATE_SIZE = GameState.size()
ROUND_STATE_SIZE = RoundState.size()
PLAYER_ROUND_STATE_SIZE = PlayerRoundState.size()
