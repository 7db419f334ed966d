from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Optional


class ErrorKind(str, Enum):
    ARITHMETIC = "arithmetic"
    RECORD = "record"
    AUTHORIZATION = "authorization"
    BUSINESS = "business"
    INVARIANT = "invariant"


class ErrorCode(IntEnum):
    """Stable integer codes surfaced to the host."""

    # arithmetic
    OVERFLOW = 1
    UNDERFLOW = 2
    DIVISION_BY_ZERO = 3
    CAST_LOSS = 4
    # record identity
    ADDRESS_MISMATCH = 10
    WRONG_RECORD = 11
    ALREADY_INITIALIZED = 12
    RECORD_MISSING = 13
    # authorization
    MISSING_SIGNATURE = 20
    INVALID_OWNER = 21
    WRONG_PRIVILEGED_WALLET = 22
    # business rules
    ROUND_NOT_ENDED = 30
    ROUND_ENDED = 31
    PURCHASE_TOO_SMALL = 32
    PREVIOUS_ROUND_ACTIVE = 33
    TRANSFER_FAILED = 34
    NO_ACTIVE_ROUND = 35
    INVALID_PARAMETERS = 36
    # invariants
    POOL_MISMATCH = 40
    SPLIT_FLOOR_VIOLATED = 41
    OVERDRAWN_POOL = 42


class GameError(RuntimeError):
    kind: ErrorKind = ErrorKind.BUSINESS

    def __init__(self, code: ErrorCode, message: str = "") -> None:
        super().__init__(message or code.name.lower())
        self.code = code

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code.name}, {str(self)!r})"


class MathError(GameError):
    kind = ErrorKind.ARITHMETIC


class RecordError(GameError):
    kind = ErrorKind.RECORD


class AuthorizationError(GameError):
    kind = ErrorKind.AUTHORIZATION


class BusinessRuleError(GameError):
    kind = ErrorKind.BUSINESS


class InvariantViolation(GameError):
    """A programming defect, never a recoverable condition."""

    kind = ErrorKind.INVARIANT


@dataclass(frozen=True)
class InstructionResult:
    ok: bool
    value: Any = None
    kind: Optional[ErrorKind] = None
    code: Optional[int] = None
    message: str = ""

    @classmethod
    def success(cls, value: Any = None) -> "InstructionResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, err: GameError) -> "InstructionResult":
        return cls(ok=False, kind=err.kind, code=int(err.code), message=str(err))

    @property
    def retryable(self) -> bool:
        return not self.ok and self.kind == ErrorKind.BUSINESS
