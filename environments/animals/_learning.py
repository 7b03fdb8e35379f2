"""Growing the tree when a guess is rejected.

A rejected leaf is replaced, from its parent's point of view, by a new
question whose branches lead to the newly learned item and back to the
rejected leaf. The rejected leaf itself is never rewritten.
"""

import asyncio
from typing import Union

import structlog

from ._errors import NotFound, StaleReference
from ._models import AnswerNode, Branch, QuestionNode, node_record
from ._store import NodeStore
from ._traversal import article
from ._tree import read_answer, read_question

logger = structlog.get_logger(__name__)


def normalize_question(text: str) -> str:
    """Stored form of a user-supplied question: always gains a trailing '?'."""
    return f"{text}?"


async def request_new_fact(store: NodeStore, guess_key: str) -> str:
    """Give-up prompt asking what the item was. Reads only."""
    guess = await read_answer(store, guess_key)
    logger.info("give_up", guess=guess_key, item=guess.a)
    return f"I give up! I thought it was {article(guess.a)} {guess.a}. What are you thinking of?"


async def learn_thing(store: NodeStore, prior_key: str, guess_key: str, new_item: str) -> str:
    """Ask for a question telling ``new_item`` apart from the rejected guess."""
    if not new_item or not new_item.strip():
        raise ValueError("New item name must not be empty")
    logger.info("learn_thing", prior_question=prior_key, guess=guess_key, thing=new_item)
    _, guess = await asyncio.gather(
        _read_prior(store, prior_key),
        read_answer(store, guess_key),
    )
    return (
        f"I don't know how to tell {article(new_item)} {new_item} from {article(guess.a)} {guess.a}! "
        f"What question would be true for {article(new_item)} {new_item}?"
    )


async def learn(
    store: NodeStore,
    prior_key: str,
    guess_key: str,
    branch: Union[Branch, str],
    new_item: str,
    question: str,
    answer_for_new_item: Union[Branch, str, bool] = Branch.YES,
) -> str:
    """Insert a discriminating question in place of a rejected guess.

    Args:
        store: Node store holding the tree
        prior_key: Question whose ``branch`` led to the rejected guess
        guess_key: The rejected answer leaf
        branch: Which branch of ``prior_key`` the guess hangs from
        new_item: Name of the item the user was thinking of
        question: Question distinguishing ``new_item`` from the guess
        answer_for_new_item: Answer to ``question`` for ``new_item``

    Returns:
        Key of the new question node

    Raises:
        ValueError: if ``new_item`` or ``question`` is blank
        StaleReference: if ``prior_key`` no longer resolves
        InvariantViolation: if ``guess_key`` is not a leaf or ``prior_key`` not a question
    """
    branch = Branch.parse(branch)
    new_side = Branch.parse(answer_for_new_item)
    if not new_item or not new_item.strip():
        raise ValueError("New item name must not be empty")
    if not question or not question.strip():
        raise ValueError("Discriminating question must not be empty")
    logger.info(
        "learn",
        prior_question=prior_key,
        guess=guess_key,
        branch=branch.value,
        answer=new_item,
        question=question,
    )

    await asyncio.gather(
        _read_prior(store, prior_key),
        read_answer(store, guess_key),
    )

    answer_key = await store.create(node_record(AnswerNode(a=new_item)))
    if new_side is Branch.YES:
        yes_key, no_key = answer_key, guess_key
    else:
        yes_key, no_key = guess_key, answer_key
    question_key = await store.create(
        node_record(QuestionNode(q=normalize_question(question), y=yes_key, n=no_key))
    )

    try:
        await store.update(prior_key, {branch.value: question_key})
    except NotFound as exc:
        raise StaleReference(f"Question {prior_key} vanished before it could be rewired") from exc

    logger.info("learned", question_key=question_key, answer_key=answer_key, parent=prior_key)
    return question_key


async def _read_prior(store: NodeStore, prior_key: str) -> QuestionNode:
    try:
        return await read_question(store, prior_key)
    except NotFound as exc:
        raise StaleReference(f"Prior question {prior_key} no longer exists") from exc
