"""Node stores backing the knowledge tree.

A store holds the tree as a flat mapping of opaque keys to node records plus
one well-known root key. It supports create-with-generated-key, read-by-key
and field update of an existing record. There is no delete: the tree only
grows, and the only rewrite ever performed is a question's branch pointer.
"""

import asyncio
import copy
import json
import os
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

from ._errors import NotFound, StorageError

logger = structlog.get_logger(__name__)


def generate_key() -> str:
    """Fresh, never-reused node key."""
    return uuid.uuid4().hex


class NodeStore(ABC):
    """Asynchronous keyed storage for tree nodes."""

    @abstractmethod
    async def create(self, fields: Dict[str, Any]) -> str:
        """Persist a new node and return its generated key."""

    @abstractmethod
    async def read(self, key: str) -> Dict[str, Any]:
        """Return a copy of the record at ``key``; raise NotFound if absent."""

    @abstractmethod
    async def update(self, key: str, fields: Dict[str, Any]) -> None:
        """Merge ``fields`` into the record at ``key``; raise NotFound if absent."""

    @abstractmethod
    async def root_key(self) -> Optional[str]:
        """The designated root key, or None for an empty store."""

    @abstractmethod
    async def set_root(self, key: str) -> None:
        """Designate ``key`` as the root. Raises NotFound for unknown keys."""


class InMemoryNodeStore(NodeStore):
    """Dict-backed store guarded by an asyncio lock."""

    def __init__(self, graph: Optional[Dict[str, Dict[str, Any]]] = None, first: Optional[str] = None):
        self.graph: Dict[str, Dict[str, Any]] = copy.deepcopy(graph) if graph else {}
        self.first = first
        self._lock = asyncio.Lock()

    async def create(self, fields: Dict[str, Any]) -> str:
        async with self._lock:
            key = generate_key()
            self.graph[key] = dict(fields)
            return key

    async def read(self, key: str) -> Dict[str, Any]:
        async with self._lock:
            if key not in self.graph:
                raise NotFound(key)
            return dict(self.graph[key])

    async def update(self, key: str, fields: Dict[str, Any]) -> None:
        async with self._lock:
            if key not in self.graph:
                raise NotFound(key)
            self.graph[key].update(fields)

    async def root_key(self) -> Optional[str]:
        return self.first

    async def set_root(self, key: str) -> None:
        async with self._lock:
            if key not in self.graph:
                raise NotFound(key)
            self.first = key

    def __len__(self) -> int:
        return len(self.graph)


class JsonFileNodeStore(NodeStore):
    """Store persisted as a single JSON document.

    Layout on disk::

        {"first": "<root key>", "graph": {"<key>": {"q": ..., "y": ..., "n": ...}, ...}}

    Every mutation rewrites the document through a temporary file and an
    atomic rename. File I/O runs in a worker thread.
    """

    def __init__(self, path):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {"first": None, "graph": {}}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                doc = json.load(fh)
        except (OSError, ValueError) as exc:
            raise StorageError(f"Cannot read knowledge file {self.path}: {exc}") from exc
        if not isinstance(doc, dict) or not isinstance(doc.get("graph", {}), dict):
            raise StorageError(f"Malformed knowledge file {self.path}")
        doc.setdefault("first", None)
        doc.setdefault("graph", {})
        return doc

    def _dump(self, doc: Dict[str, Any]) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as fh:
                json.dump(doc, fh, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError) as exc:
            if tmp.exists():
                tmp.unlink()
            raise StorageError(f"Cannot write knowledge file {self.path}: {exc}") from exc

    async def create(self, fields: Dict[str, Any]) -> str:
        async with self._lock:
            doc = await asyncio.to_thread(self._load)
            key = generate_key()
            doc["graph"][key] = dict(fields)
            await asyncio.to_thread(self._dump, doc)
            logger.debug("node_created", key=key, path=str(self.path))
            return key

    async def read(self, key: str) -> Dict[str, Any]:
        async with self._lock:
            doc = await asyncio.to_thread(self._load)
        if key not in doc["graph"]:
            raise NotFound(key)
        return dict(doc["graph"][key])

    async def update(self, key: str, fields: Dict[str, Any]) -> None:
        async with self._lock:
            doc = await asyncio.to_thread(self._load)
            if key not in doc["graph"]:
                raise NotFound(key)
            doc["graph"][key].update(fields)
            await asyncio.to_thread(self._dump, doc)
            logger.debug("node_updated", key=key, fields=sorted(fields))

    async def root_key(self) -> Optional[str]:
        async with self._lock:
            doc = await asyncio.to_thread(self._load)
        return doc["first"]

    async def set_root(self, key: str) -> None:
        async with self._lock:
            doc = await asyncio.to_thread(self._load)
            if key not in doc["graph"]:
                raise NotFound(key)
            doc["first"] = key
            await asyncio.to_thread(self._dump, doc)
