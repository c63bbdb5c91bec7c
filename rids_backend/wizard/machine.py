"""
machine.py — The RIDS wizard as a pure finite-state machine.

States are steps 0..N-1 plus the terminal `submitted` state. Only adjacent
moves exist:

    0 ⇄ 1 ⇄ ... ⇄ N-1 ──advance──▶ submitted

retreat() at step 0 is a no-op; nothing leaves `submitted`. No I/O happens
here: WizardController persists drafts and only then asks the machine to move.
"""
from dataclasses import dataclass, replace

from rids_backend.errors import InvalidState
from rids_backend.wizard.steps import TOTAL_STEPS


class WizardClosed(InvalidState):
    """The wizard already submitted its form; no further moves are possible."""

    def __init__(self, message: str = "RIDS wizard already submitted") -> None:
        super().__init__(message)


class IncompleteStep(InvalidState):
    """The current step's draft is missing required fields."""

    def __init__(self, step_key: str, missing: list[str]) -> None:
        super().__init__(f"Missing required fields in {step_key}: {', '.join(missing)}")
        self.step_key = step_key
        self.missing = missing


@dataclass(frozen=True)
class WizardState:
    current_step: int = 0
    submitted: bool = False
    total_steps: int = TOTAL_STEPS

    def __post_init__(self) -> None:
        if not 0 <= self.current_step < self.total_steps:
            raise ValueError(f"current_step {self.current_step} outside 0..{self.total_steps - 1}")

    @property
    def is_first(self) -> bool:
        return self.current_step == 0

    @property
    def is_last(self) -> bool:
        return self.current_step == self.total_steps - 1


def advance(state: WizardState) -> WizardState:
    """One step forward; from the last step this is the move into `submitted`."""
    if state.submitted:
        raise WizardClosed()
    if state.is_last:
        return replace(state, submitted=True)
    return replace(state, current_step=state.current_step + 1)


def retreat(state: WizardState) -> WizardState:
    if state.submitted:
        raise WizardClosed()
    if state.is_first:
        return state
    return replace(state, current_step=state.current_step - 1)
