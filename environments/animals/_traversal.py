"""Walking the tree one yes/no answer at a time."""

from typing import Union

import structlog

from ._errors import InvariantViolation
from ._models import AskQuestion, Branch, ProposeGuess, QuestionNode, StepResult
from ._store import NodeStore
from ._tree import read_node, read_question

logger = structlog.get_logger(__name__)

VOWELS = ("a", "e", "i", "o", "u")


def article(item: str) -> str:
    """Indefinite article for ``item``, used only when phrasing prompts."""
    return "an" if item[:1].lower() in VOWELS else "a"


def guess_prompt(item: str) -> str:
    return f"Is it {article(item)} {item}?"


async def start(store: NodeStore) -> AskQuestion:
    """Read the root question that opens every session."""
    root = await store.root_key()
    if root is None:
        logger.error("missing_root")
        raise InvariantViolation("Store has no root question")
    node = await read_question(store, root)
    logger.info("start", root=root)
    return AskQuestion(key=root, text=node.q)


async def step(store: NodeStore, current_key: str, answer: Union[Branch, str, bool]) -> StepResult:
    """Follow one branch from the question at ``current_key``.

    Args:
        store: Node store holding the tree
        current_key: Key of the question the user just answered
        answer: The user's yes/no answer

    Returns:
        AskQuestion if the branch leads to another question, ProposeGuess if
        it leads to a leaf

    Raises:
        InvariantViolation: if ``current_key`` is a leaf
        NotFound: if either key does not resolve
    """
    branch = Branch.parse(answer)
    logger.debug("step", prior_question=current_key, branch=branch.value)

    node = await read_question(store, current_key)
    next_key = node.child(branch)
    child = await read_node(store, next_key)

    if isinstance(child, QuestionNode):
        return AskQuestion(key=next_key, text=child.q)
    return ProposeGuess(key=next_key, branch=branch, guess=child.a, text=guess_prompt(child.a))
