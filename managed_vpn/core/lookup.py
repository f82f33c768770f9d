"""Tagged lookup results that keep "not configured" apart from "failed to read"."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

from .errors import ManagedVpnError

T = TypeVar("T")


class LookupState(str, Enum):
    ABSENT = "absent"
    FOUND = "found"
    FAILED = "failed"


@dataclass(frozen=True)
class Lookup(Generic[T]):
    state: LookupState
    value: Optional[T] = None
    error: Optional[ManagedVpnError] = None

    @classmethod
    def absent(cls) -> "Lookup[T]":
        return cls(LookupState.ABSENT)

    @classmethod
    def found(cls, value: T) -> "Lookup[T]":
        return cls(LookupState.FOUND, value=value)

    @classmethod
    def failed(cls, error: ManagedVpnError) -> "Lookup[T]":
        return cls(LookupState.FAILED, error=error)

    @classmethod
    def of(cls, value: Optional[T]) -> "Lookup[T]":
        return cls.absent() if value is None else cls.found(value)

    @classmethod
    def attempt(cls, loader: Callable[[], Optional[T]]) -> "Lookup[T]":
        """Run ``loader`` and capture its result, or its failure, as a lookup."""
        try:
            return cls.of(loader())
        except ManagedVpnError as exc:
            return cls.failed(exc)

    @property
    def is_found(self) -> bool:
        return self.state is LookupState.FOUND

    @property
    def is_failed(self) -> bool:
        return self.state is LookupState.FAILED

    def unwrap(self) -> Optional[T]:
        """Return the value (``None`` when absent) or raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.value
