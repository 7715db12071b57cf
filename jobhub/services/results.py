"""
Typed outcomes for store mutations.

Stores never raise for expected rejections (unknown id, duplicate email,
unresolved reference...). They log the rejection and hand back a
StoreResult so the caller can tell "applied" from "refused" without
re-reading the collection.
"""
import enum
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar


T = TypeVar("T")


class ErrorCode(str, enum.Enum):
    NOT_FOUND = "not_found"
    DUPLICATE_EMAIL = "duplicate_email"
    INVALID_REFERENCE = "invalid_reference"
    FORBIDDEN = "forbidden"
    ILLEGAL_TRANSITION = "illegal_transition"
    INVALID_CREDENTIALS = "invalid_credentials"
    VALIDATION = "validation"


@dataclass(frozen=True)
class StoreError:
    code: ErrorCode
    message: str


class StoreOperationError(Exception):
    def __init__(self, error: StoreError):
        super().__init__(error.message)
        self.error = error

    @property
    def code(self) -> ErrorCode:
        return self.error.code


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[StoreError] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "StoreResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, code: ErrorCode, message: str) -> "StoreResult[T]":
        return cls(ok=False, error=StoreError(code=code, message=message))

    def unwrap(self) -> Optional[T]:
        if not self.ok:
            raise StoreOperationError(self.error)
        return self.value

    def __bool__(self) -> bool:
        return self.ok
