"""
Reducer-style state machine used to drive the audit workflow.

The machine owns a single immutable state value; every successful transition
swaps it for the value produced by the transition's reducer.
"""

import logging
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    List,
    Optional,
    Set,
)

from .errors import (
    DuplicateStateError,
    DuplicateTransitionError,
    InvalidStateError,
    NoInitialStateError,
)
from .protocols import TEvent, TransitionOutcome, TransitionResult, TState, Transition

logger = logging.getLogger(__name__)

# Source name for transitions that may fire from every registered state
ANY_STATE = "*"


class BaseTransition(Generic[TState, TEvent]):
    """A transition whose guard and reducer are plain callables."""

    def __init__(
        self,
        source_state: str,
        target_state: str,
        trigger: str,
        guard: Optional[Callable[[TState, Optional[TEvent]], bool]] = None,
        reducer: Optional[Callable[[TState, Optional[TEvent]], TState]] = None,
    ):
        self._source_state = source_state
        self._target_state = target_state
        self._trigger = trigger
        self._guard = guard
        self._reducer = reducer

    @property
    def source_state(self) -> str:
        return self._source_state

    @property
    def target_state(self) -> str:
        return self._target_state

    @property
    def trigger(self) -> str:
        return self._trigger

    def can_transit(self, state: TState, event: Optional[TEvent] = None) -> bool:
        """Evaluate the guard. A guard that raises counts as refusing the trigger."""
        if self._guard:
            try:
                return self._guard(state, event)
            except Exception as e:
                logger.error(f"Guard for '{self._trigger}' raised: {e}")
                return False
        return True

    def apply(self, state: TState, event: Optional[TEvent] = None) -> TState:
        """Build the next value; without a reducer the value is carried over as is."""
        logger.debug(
            f"Applying transition from '{self.source_state}' to '{self.target_state}'"
        )
        if self._reducer:
            return self._reducer(state, event)
        return state


class BaseStateMachine(Generic[TState, TEvent]):
    """
    Named states over an immutable value.

    The machine is parameterised by two accessors so it can drive any
    immutable state value: ``name_of`` reads the state name from a value and
    ``with_name`` returns a copy of a value placed in another state. An
    optional ``is_locked`` predicate refuses every trigger while it holds.
    """

    def __init__(
        self,
        initial_factory: Callable[[], TState],
        name_of: Callable[[TState], str],
        with_name: Callable[[TState, str], TState],
        is_locked: Optional[Callable[[TState], bool]] = None,
    ):
        """
        Args:
            initial_factory: Builds the initial state value
            name_of: Returns the state name of a value
            with_name: Returns a copy of a value moved to the named state
            is_locked: Optional predicate that blocks all triggers while True
        """
        self._initial_factory = initial_factory
        self._name_of = name_of
        self._with_name = with_name
        self._is_locked = is_locked
        self._states: Set[str] = set()
        self._transitions: Dict[str, Dict[str, Transition[TState, TEvent]]] = {
            ANY_STATE: {}
        }
        self._initial_state: Optional[str] = None
        self._current: Optional[TState] = None
        self._history: List[str] = []
        self._listeners: Dict[str, List[Callable[..., None]]] = {}

    @property
    def current(self) -> TState:
        if self._current is None:
            raise NoInitialStateError()
        return self._current

    @property
    def current_state_name(self) -> str:
        return self._name_of(self.current)

    @property
    def states(self) -> Set[str]:
        """Get all state names registered with the state machine."""
        return set(self._states)

    @property
    def history(self) -> List[str]:
        """State names visited since start."""
        return list(self._history)

    def add_state(self, name: str, is_initial: bool = False) -> None:
        """Register a state name. The first one added is initial unless another claims it."""
        if name in self._states or name == ANY_STATE:
            raise DuplicateStateError(name)

        self._states.add(name)
        self._transitions.setdefault(name, {})

        if is_initial or self._initial_state is None:
            self._initial_state = name

    def start(self) -> TState:
        """
        Build the initial state value and make it current.

        Raises:
            NoInitialStateError: If no state has been registered
            InvalidStateError: If the initial value names an unknown state
        """
        if self._initial_state is None:
            raise NoInitialStateError()

        value = self._initial_factory()
        name = self._name_of(value)
        if name not in self._states:
            raise InvalidStateError(name)

        self._current = value
        self._history = [name]
        return value

    def add_transition(self, transition: Transition[TState, TEvent]) -> None:
        """
        Register a transition. Both endpoints must already be states.

        Raises:
            InvalidStateError: For an unknown source or target
            DuplicateTransitionError: If the source already handles this trigger
        """
        if transition.source_state != ANY_STATE and transition.source_state not in self._states:
            raise InvalidStateError(transition.source_state)

        if transition.target_state not in self._states:
            raise InvalidStateError(transition.target_state)

        source_transitions = self._transitions.setdefault(transition.source_state, {})
        if transition.trigger in source_transitions:
            raise DuplicateTransitionError(transition.source_state, transition.trigger)

        source_transitions[transition.trigger] = transition

    def _find_transition(self, state_name: str, trigger_name: str) -> Optional[Transition]:
        transition = self._transitions.get(state_name, {}).get(trigger_name)
        if transition is None:
            transition = self._transitions[ANY_STATE].get(trigger_name)
        return transition

    def is_locked(self) -> bool:
        """Return True while the lock predicate holds for the current value."""
        return bool(self._is_locked and self._is_locked(self.current))

    def evaluate(
        self, trigger_name: str, event: Optional[TEvent] = None
    ) -> Optional[TransitionOutcome]:
        """
        Check whether a trigger would be accepted, without applying it.

        Refusals are still reported to "transition_refused" listeners.

        Args:
            trigger_name: The name of the trigger
            event: Optional event data passed to the guard

        Returns:
            The refusal outcome, or None when the trigger would be accepted
        """
        return self._refusal(trigger_name, event)

    def _refusal(
        self, trigger_name: str, event: Optional[TEvent]
    ) -> Optional[TransitionOutcome]:
        state = self.current
        current_state_name = self._name_of(state)

        if self.is_locked():
            self._fire_event("transition_refused", current_state_name, trigger_name, "busy")
            return TransitionOutcome(
                TransitionResult.BUSY,
                state,
                trigger_name,
                "Another request is still in progress",
            )

        transition = self._find_transition(current_state_name, trigger_name)
        if transition is None:
            self._fire_event("transition_refused", current_state_name, trigger_name, "invalid")
            return TransitionOutcome(
                TransitionResult.INVALID_TRANSITION,
                state,
                trigger_name,
                f"'{trigger_name}' is not allowed from '{current_state_name}'",
            )

        if not transition.can_transit(state, event):
            self._fire_event("transition_refused", current_state_name, trigger_name, "guard")
            return TransitionOutcome(
                TransitionResult.FAILED_GUARD_CONDITION,
                state,
                trigger_name,
                f"Conditions for '{trigger_name}' are not met",
            )

        return None

    def fire(self, trigger_name: str, event: Optional[TEvent] = None) -> TransitionOutcome:
        """
        Apply a trigger. Refusals and reducer failures come back as outcomes;
        the current value is only replaced on success.

        Raises:
            NoInitialStateError: If the machine has not been started
        """
        refusal = self._refusal(trigger_name, event)
        if refusal is not None:
            return refusal

        state = self.current
        current_state_name = self._name_of(state)
        transition = self._find_transition(current_state_name, trigger_name)
        target_state_name = transition.target_state

        try:
            new_state = self._with_name(transition.apply(state, event), target_state_name)
        except Exception as e:
            logger.error(
                f"Reducer for '{trigger_name}' ({current_state_name} -> {target_state_name}) failed: {e}"
            )
            self._fire_event(
                "transition_error", current_state_name, target_state_name, trigger_name, e
            )
            return TransitionOutcome(TransitionResult.FAILED_ACTION, state, trigger_name, str(e))

        self._current = new_state
        self._history.append(target_state_name)
        self._fire_event(
            "transition_complete", current_state_name, target_state_name, trigger_name
        )
        return TransitionOutcome(TransitionResult.SUCCESS, new_state, trigger_name)

    def update(self, reducer: Callable[[TState], TState]) -> TState:
        """
        Replace the current value without changing state.

        Used for bookkeeping that is not a transition (such as the busy flag).

        Raises:
            InvalidStateError: If the reducer moved the value to another state
        """
        state = self.current
        new_state = reducer(state)
        if self._name_of(new_state) != self._name_of(state):
            raise InvalidStateError(self._name_of(new_state))
        self._current = new_state
        return new_state

    def can_trigger(self, trigger_name: str) -> bool:
        """True if the trigger is defined here and the machine is unlocked. Guards are not run."""
        if self._current is None or self.is_locked():
            return False
        return self._find_transition(self.current_state_name, trigger_name) is not None

    def get_permitted_triggers(self) -> Set[str]:
        """Triggers defined for the current state, wildcard ones included; empty while locked."""
        if self._current is None or self.is_locked():
            return set()

        triggers = set(self._transitions.get(self.current_state_name, {}).keys())
        triggers.update(self._transitions[ANY_STATE].keys())
        return triggers

    def add_event_listener(self, event_name: str, callback: Callable[..., None]) -> None:
        """
        Subscribe to a machine event.

        Events and their arguments:
            transition_complete: (source, target, trigger)
            transition_refused: (state, trigger, reason) with reason busy, invalid or guard
            transition_error: (source, target, trigger, exception)
        """
        self._listeners.setdefault(event_name, []).append(callback)

    def remove_event_listener(self, event_name: str, callback: Callable[..., None]) -> None:
        listeners = self._listeners.get(event_name, [])
        if callback in listeners:
            listeners.remove(callback)

    def _fire_event(self, event_name: str, *args: Any) -> None:
        # A failing listener must not undo a transition that already happened
        for listener in list(self._listeners.get(event_name, ())):
            try:
                listener(*args)
            except Exception as e:
                logger.error(f"Listener for '{event_name}' raised: {e}", exc_info=True)


def create_transition(
    source_state: str,
    target_state: str,
    trigger: str,
    guard: Optional[Callable[[Any, Optional[Any]], bool]] = None,
    reducer: Optional[Callable[[Any, Optional[Any]], Any]] = None,
) -> BaseTransition:
    """Shorthand for BaseTransition, used when declaring the audit workflow table."""
    return BaseTransition(source_state, target_state, trigger, guard, reducer)
