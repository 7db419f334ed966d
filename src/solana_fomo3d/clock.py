from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .rpc import RpcClient


@dataclass(frozen=True)
class ClockSample:
    unix_timestamp: int
    slot: int = 0
    epoch: int = 0

    def fingerprint(self) -> int:
        """Time/slot mix fed to the airdrop lottery."""
        return self.unix_timestamp + self.slot + self.epoch


class Clock(ABC):
    @abstractmethod
    def sample(self) -> ClockSample:
        """Current timestamp, slot and epoch as one reading."""

    def now(self) -> int:
        return self.sample().unix_timestamp


class ManualClock(Clock):
    """Clock that only moves when told to. Used for tests and replays."""

    def __init__(self, unix_timestamp: int, slot: int = 0, epoch: int = 0) -> None:
        self.unix_timestamp = unix_timestamp
        self.slot = slot
        self.epoch = epoch

    def sample(self) -> ClockSample:
        return ClockSample(self.unix_timestamp, self.slot, self.epoch)

    def advance(self, seconds: int, slots: int = 0) -> None:
        if seconds < 0 or slots < 0:
            raise ValueError("Clock cannot go backwards")
        self.unix_timestamp += seconds
        self.slot += slots

    def set(self, unix_timestamp: int, slot: int | None = None) -> None:
        if unix_timestamp < self.unix_timestamp:
            raise ValueError(
                f"Clock cannot go backwards: {unix_timestamp} < {self.unix_timestamp}"
            )
        self.unix_timestamp = unix_timestamp
        if slot is not None:
            self.slot = slot


class SystemClock(Clock):
    def sample(self) -> ClockSample:
        return ClockSample(int(time.time()))


class RpcClock(Clock):
    """Cluster clock read over JSON-RPC: finalized slot, its block time and the epoch."""

    def __init__(self, rpc: RpcClient) -> None:
        self.rpc = rpc

    def sample(self) -> ClockSample:
        slot = self.rpc.get_slot()
        return ClockSample(
            unix_timestamp=self.rpc.get_block_time(slot),
            slot=slot,
            epoch=self.rpc.get_epoch(),
        )
