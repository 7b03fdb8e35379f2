"""Animals guessing game.

Guess an animal by walking a binary tree of yes/no questions, and learn a new
discriminating question whenever a guess is wrong.

Usage:
    from animals import Actor

    actor = Actor()
    turn = await actor.start_session()
    turn = await actor.step(turn["state"]["session_id"], "no")
"""

from .env import Actor
from ._config import AnimalsConfig
from ._errors import (
    AnimalsError,
    InvariantViolation,
    NotFound,
    SessionStateError,
    StaleReference,
    StorageError,
)
from ._learning import learn, learn_thing, normalize_question, request_new_fact
from ._logging import setup_logging
from ._models import AnswerNode, AskQuestion, Branch, ProposeGuess, QuestionNode, TreeStats
from ._session import SessionManager, SessionPhase, SessionState
from ._store import InMemoryNodeStore, JsonFileNodeStore, NodeStore
from ._traversal import article, start, step
from ._tree import check_tree, parse_node, seed_tree

__all__ = [
    "Actor",
    "AnimalsConfig",
    "AnimalsError",
    "InvariantViolation",
    "NotFound",
    "SessionStateError",
    "StaleReference",
    "StorageError",
    "learn",
    "learn_thing",
    "normalize_question",
    "request_new_fact",
    "setup_logging",
    "AnswerNode",
    "AskQuestion",
    "Branch",
    "ProposeGuess",
    "QuestionNode",
    "TreeStats",
    "SessionManager",
    "SessionPhase",
    "SessionState",
    "InMemoryNodeStore",
    "JsonFileNodeStore",
    "NodeStore",
    "article",
    "start",
    "step",
    "check_tree",
    "parse_node",
    "seed_tree",
]
