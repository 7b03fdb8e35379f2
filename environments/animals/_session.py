"""Session state for a single play-through of the guessing game.

A session carries the caller's position in the tree across turns: the last
question asked and, while a guess awaits confirmation, which leaf was guessed
and which branch of that question it hangs from. The tree stores no parent
pointers, so these coordinates are the only way learning can find the branch
to rewire.

Transitions are pure: each returns a new ``SessionState``.
"""

import time
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Optional

from ._errors import SessionStateError
from ._models import AskQuestion, Branch, ProposeGuess, StepResult


class SessionPhase(Enum):
    """Where a session is in the question/guess/learn cycle."""
    ASKING = "asking"                # Waiting for a yes/no answer to a question
    GUESS_PENDING = "guess_pending"  # Waiting for confirmation of a guess
    LEARNING = "learning"            # Guess rejected, collecting the new item
    CONFIRMED = "confirmed"          # Guess confirmed (terminal)
    LEARNED = "learned"              # New item committed (terminal)


TERMINAL_PHASES = (SessionPhase.CONFIRMED, SessionPhase.LEARNED)


@dataclass(frozen=True)
class SessionState:
    """Per-conversation position in the tree."""
    session_id: str
    phase: SessionPhase
    current_question_key: str
    current_guess_key: Optional[str] = None
    current_guess_branch: Optional[Branch] = None
    new_item: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "phase": self.phase.value,
            "current_question_key": self.current_question_key,
            "current_guess_key": self.current_guess_key,
            "current_guess_branch": self.current_guess_branch.value if self.current_guess_branch else None,
            "new_item": self.new_item,
        }


def require_phase(state: SessionState, *phases: SessionPhase) -> None:
    if state.phase not in phases:
        allowed = ", ".join(p.value for p in phases)
        raise SessionStateError(f"Session {state.session_id} is {state.phase.value}, expected {allowed}")


def begin(first: AskQuestion, session_id: Optional[str] = None) -> SessionState:
    """State for a fresh session positioned at the root question."""
    return SessionState(
        session_id=session_id or str(uuid.uuid4()),
        phase=SessionPhase.ASKING,
        current_question_key=first.key,
    )


def after_step(state: SessionState, result: StepResult) -> SessionState:
    """Advance past a question to the next question or to a pending guess."""
    require_phase(state, SessionPhase.ASKING)
    if isinstance(result, ProposeGuess):
        return replace(
            state,
            phase=SessionPhase.GUESS_PENDING,
            current_guess_key=result.key,
            current_guess_branch=result.branch,
        )
    return replace(state, current_question_key=result.key)


def after_guess_confirmed(state: SessionState) -> SessionState:
    require_phase(state, SessionPhase.GUESS_PENDING)
    return replace(state, phase=SessionPhase.CONFIRMED)


def after_guess_rejected(state: SessionState) -> SessionState:
    require_phase(state, SessionPhase.GUESS_PENDING)
    return replace(state, phase=SessionPhase.LEARNING)


def after_thing_named(state: SessionState, new_item: str) -> SessionState:
    require_phase(state, SessionPhase.LEARNING)
    return replace(state, new_item=new_item)


def after_learned(state: SessionState) -> SessionState:
    require_phase(state, SessionPhase.LEARNING)
    return replace(state, phase=SessionPhase.LEARNED)


class SessionManager:
    """Keeps the latest state of every open session by id.

    This class handles:
    - Registering new sessions
    - Replacing a session's state after each turn
    - Evicting idle, finished and (when full) least recently used sessions
    """

    def __init__(
        self,
        max_sessions: int = 1000,
        session_ttl: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize session manager.

        Args:
            max_sessions: Maximum number of concurrent sessions
            session_ttl: Seconds a session may sit untouched before it is evicted
            clock: Monotonic time source
        """
        self.sessions: Dict[str, SessionState] = {}
        self.last_touched: Dict[str, float] = {}
        self.max_sessions = max_sessions
        self.session_ttl = session_ttl
        self._clock = clock

    def open(self, state: SessionState) -> SessionState:
        if state.session_id not in self.sessions:
            self._cleanup_old_sessions()
            if len(self.sessions) >= self.max_sessions:
                # Table full of live sessions: drop the least recently used one
                oldest = min(self.last_touched, key=self.last_touched.get)
                self.close(oldest)
        self.sessions[state.session_id] = state
        self.last_touched[state.session_id] = self._clock()
        return state

    def get(self, session_id: str) -> SessionState:
        if session_id not in self.sessions:
            raise SessionStateError(f"Session not found: {session_id}")
        self.last_touched[session_id] = self._clock()
        return self.sessions[session_id]

    def save(self, state: SessionState) -> SessionState:
        if state.session_id not in self.sessions:
            raise SessionStateError(f"Session not found: {state.session_id}")
        self.sessions[state.session_id] = state
        self.last_touched[state.session_id] = self._clock()
        return state

    def close(self, session_id: str) -> None:
        self.sessions.pop(session_id, None)
        self.last_touched.pop(session_id, None)

    def _cleanup_old_sessions(self) -> None:
        """Remove finished sessions and sessions idle for longer than the TTL."""
        now = self._clock()
        to_remove = [
            sid for sid, state in self.sessions.items()
            if state.finished or now - self.last_touched[sid] > self.session_ttl
        ]
        for sid in to_remove:
            self.close(sid)
