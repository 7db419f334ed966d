from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from .bank import Bank
from .clock import Clock
from .project_constants import CURRENCY_MINT, PROGRAM_ID
from .records import RecordStore

log = logging.getLogger(__name__)


class Host:
    """
    Everything the engine consumes from its environment: the record store,
    the value-transfer ledger and the clock.

    Operations run one at a time. `atomic()` makes each one all-or-nothing:
    on any error every record and balance goes back to where it was.
    """

    def __init__(self, records: RecordStore, bank: Bank, clock: Clock) -> None:
        self.records = records
        self.bank = bank
        self.clock = clock

    @contextmanager
    def atomic(self) -> Iterator[None]:
        records = self.records.snapshot()
        balances = self.bank.snapshot()
        try:
            yield
        except Exception as e:
            log.debug("Rolling back after %r", e)
            self.records.restore(records)
            self.bank.restore(balances)
            raise

    @classmethod
    def in_memory(
        cls, clock: Clock, program_id: str = PROGRAM_ID, mint: str = CURRENCY_MINT
    ) -> "Host":
        return cls(RecordStore(program_id), Bank(mint), clock)
