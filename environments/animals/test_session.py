"""Tests for session state transitions and the session manager."""

import pytest

from animals._errors import SessionStateError
from animals._models import AskQuestion, Branch, ProposeGuess
from animals._session import (
    SessionManager,
    SessionPhase,
    after_guess_confirmed,
    after_guess_rejected,
    after_learned,
    after_step,
    after_thing_named,
    begin,
)

FIRST = AskQuestion(key="root", text="Does it fly?")
GUESS = ProposeGuess(key="Mammal", branch=Branch.NO, guess="Dog", text="Is it a Dog?")


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestTransitions:
    def test_begin(self):
        state = begin(FIRST, "s1")
        assert state.session_id == "s1"
        assert state.phase is SessionPhase.ASKING
        assert state.current_question_key == "root"
        assert state.current_guess_key is None

    def test_begin_generates_id(self):
        assert begin(FIRST).session_id != begin(FIRST).session_id

    def test_question_moves_position(self):
        state = after_step(begin(FIRST), AskQuestion(key="inner", text="Is it big?"))
        assert state.phase is SessionPhase.ASKING
        assert state.current_question_key == "inner"

    def test_guess_keeps_parent(self):
        """The parent question stays current so learning can rewire it."""
        state = after_step(begin(FIRST), GUESS)
        assert state.phase is SessionPhase.GUESS_PENDING
        assert state.current_question_key == "root"
        assert state.current_guess_key == "Mammal"
        assert state.current_guess_branch is Branch.NO

    def test_transitions_do_not_mutate(self):
        state = begin(FIRST)
        after_step(state, GUESS)
        assert state.phase is SessionPhase.ASKING

    def test_confirm(self):
        state = after_guess_confirmed(after_step(begin(FIRST), GUESS))
        assert state.phase is SessionPhase.CONFIRMED
        assert state.finished

    def test_reject_then_learn(self):
        state = after_guess_rejected(after_step(begin(FIRST), GUESS))
        state = after_thing_named(state, "Cat")
        assert state.new_item == "Cat"
        state = after_learned(state)
        assert state.phase is SessionPhase.LEARNED
        assert state.finished

    def test_cannot_step_while_guess_pending(self):
        state = after_step(begin(FIRST), GUESS)
        with pytest.raises(SessionStateError):
            after_step(state, GUESS)

    def test_cannot_confirm_while_asking(self):
        with pytest.raises(SessionStateError):
            after_guess_confirmed(begin(FIRST))

    def test_cannot_learn_while_asking(self):
        with pytest.raises(SessionStateError):
            after_learned(begin(FIRST))

    def test_to_dict(self):
        state = after_step(begin(FIRST, "s1"), GUESS)
        assert state.to_dict() == {
            "session_id": "s1",
            "phase": "guess_pending",
            "current_question_key": "root",
            "current_guess_key": "Mammal",
            "current_guess_branch": "n",
            "new_item": None,
        }


class TestSessionManager:
    """Tests for session bookkeeping."""

    @pytest.fixture
    def manager(self):
        return SessionManager(max_sessions=2)

    def test_open_and_get(self, manager):
        state = manager.open(begin(FIRST, "s1"))
        assert manager.get("s1") is state

    def test_get_unknown(self, manager):
        with pytest.raises(SessionStateError):
            manager.get("nope")

    def test_save_unknown(self, manager):
        with pytest.raises(SessionStateError):
            manager.save(begin(FIRST, "nope"))

    def test_close(self, manager):
        manager.open(begin(FIRST, "s1"))
        manager.close("s1")
        manager.close("s1")
        assert "s1" not in manager.sessions

    def test_full_table_evicts_least_recently_used(self):
        """Abandoned live sessions never block a new one."""
        clock = FakeClock()
        manager = SessionManager(max_sessions=2, clock=clock)
        manager.open(begin(FIRST, "s1"))
        clock.now = 1
        manager.open(begin(FIRST, "s2"))
        clock.now = 2
        manager.get("s1")
        clock.now = 3
        manager.open(begin(FIRST, "s3"))
        assert set(manager.sessions) == {"s1", "s3"}
        assert set(manager.last_touched) == {"s1", "s3"}

    def test_idle_sessions_expire(self):
        clock = FakeClock()
        manager = SessionManager(max_sessions=10, session_ttl=60, clock=clock)
        manager.open(begin(FIRST, "idle"))
        clock.now = 30
        manager.open(begin(FIRST, "recent"))
        clock.now = 61
        manager.open(begin(FIRST, "new"))
        assert set(manager.sessions) == {"recent", "new"}

    def test_touch_keeps_session_alive(self):
        clock = FakeClock()
        manager = SessionManager(max_sessions=10, session_ttl=60, clock=clock)
        manager.open(begin(FIRST, "s1"))
        clock.now = 50
        manager.save(after_step(manager.get("s1"), GUESS))
        clock.now = 100
        manager.open(begin(FIRST, "s2"))
        assert "s1" in manager.sessions

    def test_finished_sessions_are_evicted(self, manager):
        manager.open(begin(FIRST, "s1"))
        manager.open(after_guess_confirmed(after_step(begin(FIRST, "s2"), GUESS)))
        manager.open(begin(FIRST, "s3"))
        assert set(manager.sessions) == {"s1", "s3"}
