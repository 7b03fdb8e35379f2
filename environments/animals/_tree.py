"""The discrimination tree built from node store records.

Records coming out of a store are schemaless dicts. Every read goes through
``parse_node`` so that the rest of the code only ever sees one of the two
closed variants: a question with both branches, or an answer leaf.
"""

from collections import Counter
from typing import Any, Dict, List, Optional, Set, Tuple

import structlog
from pydantic import ValidationError

from ._errors import InvariantViolation
from ._models import AnswerNode, Node, QuestionNode, TreeStats, node_record
from ._store import NodeStore

logger = structlog.get_logger(__name__)


def parse_node(key: str, record: Dict[str, Any]) -> Node:
    """Validate a raw record into a QuestionNode or an AnswerNode.

    Args:
        key: Key the record was read from (for error messages)
        record: Raw record as returned by the store

    Returns:
        The validated node variant

    Raises:
        InvariantViolation: if the record is both variants, neither, or malformed
    """
    if not isinstance(record, dict):
        logger.error("malformed_node", key=key, record=repr(record))
        raise InvariantViolation(f"Node {key} is not a record: {record!r}")
    has_q = "q" in record
    has_a = "a" in record
    if has_q == has_a:
        logger.error("malformed_node", key=key, record=record)
        raise InvariantViolation(f"Node {key} must be exactly one of question or answer: {record!r}")
    model = QuestionNode if has_q else AnswerNode
    try:
        return model.model_validate(record)
    except ValidationError as exc:
        logger.error("malformed_node", key=key, record=record, errors=exc.errors(include_url=False))
        raise InvariantViolation(f"Malformed node {key}: {exc}") from exc


async def read_node(store: NodeStore, key: str) -> Node:
    """Read and validate a node. NotFound propagates from the store."""
    return parse_node(key, await store.read(key))


async def read_question(store: NodeStore, key: str) -> QuestionNode:
    node = await read_node(store, key)
    if not isinstance(node, QuestionNode):
        logger.error("expected_question", key=key, node=node_record(node))
        raise InvariantViolation(f"Node {key} is an answer, expected a question")
    return node


async def read_answer(store: NodeStore, key: str) -> AnswerNode:
    node = await read_node(store, key)
    if not isinstance(node, AnswerNode):
        logger.error("expected_answer", key=key, node=node_record(node))
        raise InvariantViolation(f"Node {key} is a question, expected an answer")
    return node


async def seed_tree(store: NodeStore, question: str, yes_item: str, no_item: str) -> str:
    """Populate an empty store with a one-question tree and make it the root.

    Returns:
        The root key
    """
    existing = await store.root_key()
    if existing is not None:
        raise ValueError(f"Store already has a root: {existing}")

    yes_key = await store.create(node_record(AnswerNode(a=yes_item)))
    no_key = await store.create(node_record(AnswerNode(a=no_item)))
    root = await store.create(node_record(QuestionNode(q=question, y=yes_key, n=no_key)))
    await store.set_root(root)
    logger.info("tree_seeded", root=root, question=question, yes=yes_item, no=no_item)
    return root


async def check_tree(store: NodeStore) -> TreeStats:
    """Walk the tree from the root and verify its structural invariants.

    Checks that the root is a question, that every branch pointer resolves,
    and that the yes/no relation forms a tree (no cycles, no shared children).
    Items guessed by more than one leaf are reported, not rejected.

    Raises:
        InvariantViolation: on a leaf root, cycle, shared child or malformed node
        NotFound: on a dangling branch pointer
    """
    root = await store.root_key()
    if root is None:
        logger.error("missing_root")
        raise InvariantViolation("Store has no root")
    await read_question(store, root)

    seen: Set[str] = set()
    items: Counter = Counter()
    questions = 0
    height = 0
    stack: List[Tuple[str, int, Optional[str]]] = [(root, 0, None)]
    while stack:
        key, depth, parent = stack.pop()
        if key in seen:
            logger.error("node_reached_twice", key=key, parent=parent)
            raise InvariantViolation(f"Node {key} reached twice (second parent {parent})")
        seen.add(key)
        height = max(height, depth)

        node = await read_node(store, key)
        if isinstance(node, QuestionNode):
            questions += 1
            stack.append((node.n, depth + 1, key))
            stack.append((node.y, depth + 1, key))
        else:
            items[node.a] += 1

    duplicates = {item: count for item, count in items.items() if count > 1}
    if duplicates:
        logger.warning("duplicate_items", items=duplicates)

    return TreeStats(
        root=root,
        question_count=questions,
        answer_count=sum(items.values()),
        height=height,
        duplicate_items=duplicates,
    )
