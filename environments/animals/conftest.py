"""Shared fixtures for the animals test modules."""

import pytest

from animals._store import InMemoryNodeStore


class RecordingStore(InMemoryNodeStore):
    """In-memory store that counts mutating calls."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.creates = 0
        self.updates = 0

    async def create(self, fields):
        self.creates += 1
        return await super().create(fields)

    async def update(self, key, fields):
        self.updates += 1
        await super().update(key, fields)


def scenario_graph():
    """Root question with two leaves: Eagle on yes, Dog on no."""
    return {
        "root": {"q": "Does it fly?", "y": "Bird", "n": "Mammal"},
        "Bird": {"a": "Eagle"},
        "Mammal": {"a": "Dog"},
    }


@pytest.fixture
def store():
    return RecordingStore(graph=scenario_graph(), first="root")
