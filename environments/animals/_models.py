"""Data models for the discrimination tree and traversal results."""

from enum import Enum
from typing import Any, Dict, Union

from pydantic import BaseModel, ConfigDict, Field


class Branch(str, Enum):
    """Edge label from a question node to one of its children."""
    YES = "y"
    NO = "n"

    @classmethod
    def parse(cls, answer: Union["Branch", str, bool]) -> "Branch":
        """Coerce a user answer (``yes``/``no``/``y``/``n``/bool) to a branch."""
        if isinstance(answer, Branch):
            return answer
        if isinstance(answer, bool):
            return cls.YES if answer else cls.NO
        value = str(answer).strip().lower()
        if value in ("y", "yes", "true"):
            return cls.YES
        if value in ("n", "no", "false"):
            return cls.NO
        raise ValueError(f"Not a yes/no answer: {answer!r}")


class QuestionNode(BaseModel):
    """Interior node: a yes/no question with both branches populated."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    q: str = Field(min_length=1)
    y: str = Field(min_length=1)
    n: str = Field(min_length=1)

    def child(self, branch: Branch) -> str:
        return self.y if branch is Branch.YES else self.n


class AnswerNode(BaseModel):
    """Leaf node naming a guessable item."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    a: str = Field(min_length=1)


Node = Union[QuestionNode, AnswerNode]


def node_record(node: Node) -> Dict[str, Any]:
    """Plain dict form of a node, as persisted in a store."""
    return node.model_dump()


class AskQuestion(BaseModel):
    """Traversal reached a question; present ``text`` and wait for yes/no."""

    key: str
    text: str


class ProposeGuess(BaseModel):
    """Traversal reached a leaf; ask the user to confirm the guess."""

    key: str
    branch: Branch
    guess: str
    text: str


StepResult = Union[AskQuestion, ProposeGuess]


class TreeStats(BaseModel):
    """Summary of the tree reachable from the root."""

    root: str
    question_count: int
    answer_count: int
    height: int
    duplicate_items: Dict[str, int] = Field(default_factory=dict)
