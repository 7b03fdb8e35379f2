"""Animals actor – turn-level entrypoint for the guessing game."""

from __future__ import annotations

from typing import Optional, Union

import structlog

from . import _learning, _session, _traversal
from ._config import AnimalsConfig
from ._errors import NotFound, SessionStateError, StaleReference
from ._logging import setup_logging
from ._models import Branch, ProposeGuess
from ._session import SessionManager, SessionState
from ._store import InMemoryNodeStore, JsonFileNodeStore, NodeStore
from ._tree import check_tree, seed_tree

logger = structlog.get_logger(__name__)

WELCOME = "Great! Think of an animal, but don't tell me what it is yet. Okay, my first question is: {question}"
WIN = "I guessed it! Thanks for playing."
THANKS = "Ok, thanks for the information!"


class Actor:
    """Thin façade tying the store, the engines and per-session state together.

    Each method is one conversational turn. The dialogue layer resolves the
    user's utterance to an action and calls the matching method with the
    session id; the returned dict carries the speech to relay and the updated
    session state.
    """

    def __init__(
        self,
        store: Optional[NodeStore] = None,
        config: Optional[AnimalsConfig] = None,
        configure_logging: bool = False,
    ):
        self.config = config or AnimalsConfig.from_env()
        if configure_logging:
            setup_logging(self.config.log_level, self.config.log_format)
        if store is None:
            if self.config.store_path:
                store = JsonFileNodeStore(self.config.store_path)
            else:
                store = InMemoryNodeStore()
        self.store = store
        self.session_manager = SessionManager(
            max_sessions=self.config.max_sessions,
            session_ttl=self.config.session_ttl,
        )

    async def ensure_seeded(self) -> str:
        """Return the root key, seeding an empty store from config first."""
        root = await self.store.root_key()
        if root is None:
            root = await seed_tree(
                self.store,
                self.config.seed_question,
                self.config.seed_yes,
                self.config.seed_no,
            )
        return root

    async def start_session(self, session_id: Optional[str] = None) -> dict:
        await self.ensure_seeded()
        first = await _traversal.start(self.store)
        state = self.session_manager.open(_session.begin(first, session_id))
        logger.info("play", session_id=state.session_id, first=first.key)
        return {
            "speech": WELCOME.format(question=first.text),
            "result": first.model_dump(mode="json"),
            "state": state.to_dict(),
        }

    async def step(self, session_id: str, answer: Union[Branch, str, bool]) -> dict:
        state = self.session_manager.get(session_id)
        _session.require_phase(state, _session.SessionPhase.ASKING)
        result = await self._guarded(state, _traversal.step(self.store, state.current_question_key, answer))
        state = self.session_manager.save(_session.after_step(state, result))
        return {
            "speech": result.text,
            "result": result.model_dump(mode="json"),
            "guess": isinstance(result, ProposeGuess),
            "state": state.to_dict(),
        }

    async def confirm_guess(self, session_id: str, answer: Union[Branch, str, bool]) -> dict:
        state = self.session_manager.get(session_id)
        if Branch.parse(answer) is Branch.YES:
            state = _session.after_guess_confirmed(state)
            self.session_manager.close(session_id)
            logger.info("guess_confirmed", session_id=session_id, guess=state.current_guess_key)
            return {"speech": WIN, "done": True, "state": state.to_dict()}

        state = _session.after_guess_rejected(state)
        speech = await self._guarded(state, _learning.request_new_fact(self.store, state.current_guess_key))
        state = self.session_manager.save(state)
        return {"speech": speech, "done": False, "state": state.to_dict()}

    async def learn_thing(self, session_id: str, new_item: str) -> dict:
        state = self.session_manager.get(session_id)
        state = _session.after_thing_named(state, new_item)
        speech = await self._guarded(
            state,
            _learning.learn_thing(self.store, state.current_question_key, state.current_guess_key, new_item),
        )
        state = self.session_manager.save(state)
        return {"speech": speech, "state": state.to_dict()}

    async def learn(
        self,
        session_id: str,
        new_item: Optional[str],
        question: str,
        answer_for_new_item: Union[Branch, str, bool] = Branch.YES,
    ) -> dict:
        state = self.session_manager.get(session_id)
        new_item = new_item or state.new_item
        if not new_item:
            raise SessionStateError(f"Session {session_id} has not named the new item")
        if new_item != state.new_item:
            state = _session.after_thing_named(state, new_item)
        final = _session.after_learned(state)
        question_key = await self._guarded(
            state,
            _learning.learn(
                self.store,
                state.current_question_key,
                state.current_guess_key,
                state.current_guess_branch,
                new_item,
                question,
                answer_for_new_item,
            ),
        )
        self.session_manager.close(session_id)
        return {"speech": THANKS, "question_key": question_key, "done": True, "state": final.to_dict()}

    async def check_tree(self) -> dict:
        return (await check_tree(self.store)).model_dump()

    async def _guarded(self, state: SessionState, turn):
        """Await a turn; on a dangling or stale key drop the session so the caller restarts."""
        try:
            return await turn
        except (NotFound, StaleReference):
            logger.warning("session_reset", session_id=state.session_id, phase=state.phase.value)
            self.session_manager.close(state.session_id)
            raise


__all__ = ["Actor"]
