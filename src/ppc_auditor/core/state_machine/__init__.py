"""
State Machine package for ppc_auditor.

This package provides a small reducer-style state machine used to model
guided, step-by-step workflows over an immutable state value.
"""

from .base import (
    ANY_STATE,
    BaseStateMachine,
    BaseTransition,
    create_transition,
)
from .errors import (
    DuplicateStateError,
    DuplicateTransitionError,
    InvalidStateError,
    NoInitialStateError,
    StateMachineError,
)
from .protocols import Transition, TransitionOutcome, TransitionResult

__all__ = [
    # Protocols
    "Transition",
    "TransitionOutcome",
    "TransitionResult",
    # Base implementations
    "ANY_STATE",
    "BaseStateMachine",
    "BaseTransition",
    "create_transition",
    # Errors
    "StateMachineError",
    "InvalidStateError",
    "DuplicateStateError",
    "DuplicateTransitionError",
    "NoInitialStateError",
]
