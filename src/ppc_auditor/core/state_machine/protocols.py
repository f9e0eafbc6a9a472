"""
Contracts shared by the workflow state machine and its transitions.

States are plain names. The value carried alongside them is immutable and
every accepted trigger replaces it with a new one, so a caller holding an
older value never sees it change underneath them.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Generic, Optional, Protocol, TypeVar, runtime_checkable

TState = TypeVar("TState")
TEvent = TypeVar("TEvent")


class TransitionResult(Enum):
    """Why a trigger was accepted or refused."""

    SUCCESS = auto()
    FAILED_GUARD_CONDITION = auto()
    FAILED_ACTION = auto()
    INVALID_TRANSITION = auto()
    BUSY = auto()
    """An operation started earlier has not resolved yet."""


@dataclass(frozen=True)
class TransitionOutcome(Generic[TState]):
    """The value left behind by a trigger, plus the verdict on it.

    A refused trigger still carries ``state``: it is the unchanged value the
    machine held when the trigger arrived.
    """

    result: TransitionResult
    state: TState
    trigger: str
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.result is TransitionResult.SUCCESS


@runtime_checkable
class Transition(Protocol[TState, TEvent]):  # type: ignore[misc]
    """An edge from one named state to another, fired by a trigger."""

    @property
    def source_state(self) -> str: ...

    @property
    def target_state(self) -> str: ...

    @property
    def trigger(self) -> str: ...

    def can_transit(self, state: TState, event: Optional[TEvent] = None) -> bool:
        """Guard: return False to refuse the trigger without touching ``state``."""
        ...

    def apply(self, state: TState, event: Optional[TEvent] = None) -> TState:
        """Reducer: build the next value from ``state`` and the event payload."""
        ...
