from __future__ import annotations

from typing import Literal

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from bingo_board.models import SessionPhase


SessionEvent = Literal["finalize", "revert"]


class SessionFSM(StateMachine):
    """Phase machine for a bingo session.

    - EDIT: goals are being collected.
    - PLAY: board is locked and shuffled.

    The engine builds new session values; the FSM only guards transitions.
    """

    edit = State(SessionPhase.EDIT.value, value=SessionPhase.EDIT.value, initial=True)
    play = State(SessionPhase.PLAY.value, value=SessionPhase.PLAY.value)

    finalize = edit.to(play)
    revert = play.to(edit)

    def __init__(self, phase: SessionPhase = SessionPhase.EDIT):
        super().__init__(start_value=phase.value)

    @property
    def phase(self) -> SessionPhase:
        return SessionPhase(str(self.current_state.value))


def next_phase(phase: SessionPhase, event: SessionEvent) -> SessionPhase | None:
    """Return the phase `event` leads to from `phase`, or None if not allowed."""

    fsm = SessionFSM(phase)
    try:
        fsm.send(event)
    except TransitionNotAllowed:
        return None
    return fsm.phase
