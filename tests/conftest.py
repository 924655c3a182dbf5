"""
Shared fixtures: in-memory backends (plain, failure-injecting, in-flight
tracking) and a store bound to them
"""
import asyncio

import pytest

from app.core.errors import PersistenceError
from app.database.backend import MemoryBackend
from app.services.store import PatientStore


class FlakyBackend(MemoryBackend):
    """
    Memory backend that fails selected (operation, collection) pairs
    """
    def __init__(self):
        super().__init__()
        self.fail_on = set()

    def _maybe_fail(self, operation: str, collection: str):
        if (operation, collection) in self.fail_on:
            raise PersistenceError(f"simulated outage during {operation} on {collection}", kind=collection)

    async def create(self, collection, document):
        self._maybe_fail("create", collection)
        return await super().create(collection, document)

    async def update(self, collection, doc_id, partial):
        self._maybe_fail("update", collection)
        return await super().update(collection, doc_id, partial)

    async def delete(self, collection, doc_id):
        self._maybe_fail("delete", collection)
        return await super().delete(collection, doc_id)

    async def get_all(self, collection, query=None):
        self._maybe_fail("get_all", collection)
        return await super().get_all(collection, query)


class TrackingBackend(MemoryBackend):
    """
    Memory backend that records how many writes per id are in flight
    """
    def __init__(self):
        super().__init__()
        self.in_flight = {}
        self.max_in_flight = 0
        self.calls = []

    async def _tracked(self, operation, doc_id, call):
        self.in_flight[doc_id] = self.in_flight.get(doc_id, 0) + 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight[doc_id])
        self.calls.append(operation)
        try:
            await asyncio.sleep(0.01)
            return await call
        finally:
            self.in_flight[doc_id] -= 1

    async def update(self, collection, doc_id, partial):
        return await self._tracked("update", doc_id, super().update(collection, doc_id, partial))

    async def delete(self, collection, doc_id):
        return await self._tracked("delete", doc_id, super().delete(collection, doc_id))


async def settle():
    """Let background snapshot consumers run"""
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def backend():
    return FlakyBackend()


@pytest.fixture
def store(backend):
    return PatientStore(backend, default_worker="asha-test")


@pytest.fixture
def high_risk_patient():
    return {
        "name": "Sita Devi",
        "age": 28,
        "village": "Rampur",
        "phone": "9876543210",
        "bp_systolic": 150,
        "bp_diastolic": 95,
        "sugar_level": 210,
        "is_pregnant": False,
    }


@pytest.fixture
def low_risk_patient():
    return {
        "name": "Ramesh Kumar",
        "age": 45,
        "village": "Lakhanpur",
        "bp_systolic": 120,
        "bp_diastolic": 80,
        "sugar_level": 100,
    }
