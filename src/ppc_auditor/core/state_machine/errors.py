"""
Errors raised while a state machine is being defined or started.

These signal programming mistakes in a workflow definition, not refused
triggers: a refused trigger is reported through a TransitionOutcome.
"""

from ..errors import WorkflowError


class StateMachineError(WorkflowError):
    """Base class for state machine definition errors."""


class InvalidStateError(StateMachineError):
    """A transition or state value refers to a state that was never added."""

    def __init__(self, state_name: str):
        super().__init__(f"Invalid state: {state_name}", context={"state": state_name})
        self.state_name = state_name


class DuplicateStateError(StateMachineError):
    """A state name was registered twice, or clashes with the wildcard source."""

    def __init__(self, state_name: str):
        super().__init__(
            f"State with name '{state_name}' already exists", context={"state": state_name}
        )
        self.state_name = state_name


class DuplicateTransitionError(StateMachineError):
    """Two transitions share the same source state and trigger."""

    def __init__(self, source: str, trigger: str):
        super().__init__(
            f"Transition from state '{source}' with trigger '{trigger}' already exists",
            context={"source": source, "trigger": trigger},
        )


class NoInitialStateError(StateMachineError):
    def __init__(self):
        super().__init__("No initial state defined for the state machine")
