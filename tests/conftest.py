"""Shared pytest fixtures.

Services run against an in-memory stand-in for the async pymongo collection
API. Only the calls the services make are implemented. Single-document
operations complete without yielding to the event loop once they start,
which mirrors MongoDB's per-document atomicity; every call yields once
before starting so concurrent callers interleave.
"""

import asyncio
import copy
import re
from datetime import date
from types import SimpleNamespace
from typing import Any
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ellcworth.config import Config
from ellcworth.core.core import Core

REFERENCE_DAY = date(2025, 1, 15)
OWNER_ID = UUID("87654321-4321-8765-4321-876543218765")


def get_value(doc: dict[str, Any], path: str) -> Any:
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def matches(doc: dict[str, Any], query: dict[str, Any]) -> bool:
    for key, expected in query.items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in expected):
                return False
            continue
        actual = get_value(doc, key)
        if isinstance(expected, dict) and "$regex" in expected:
            flags = re.IGNORECASE if "i" in expected.get("$options", "") else 0
            if not isinstance(actual, str) or not re.search(expected["$regex"], actual, flags):
                return False
        elif isinstance(expected, dict) and any(k.startswith("$") for k in expected):
            if "$gte" in expected and not (actual is not None and actual >= expected["$gte"]):
                return False
            if "$lte" in expected and not (actual is not None and actual <= expected["$lte"]):
                return False
        elif actual != expected:
            return False
    return True


def apply_update(doc: dict[str, Any], update: dict[str, Any]) -> None:
    for key, value in update.get("$set", {}).items():
        doc[key] = copy.deepcopy(value)
    for key, value in update.get("$inc", {}).items():
        doc[key] = doc.get(key, 0) + value
    for key, value in update.get("$push", {}).items():
        doc.setdefault(key, []).append(copy.deepcopy(value))


class FakeCollection:
    def __init__(self, name: str) -> None:
        self.name = name
        self.docs: list[dict[str, Any]] = []
        self.unique_fields: list[str] = ["_id"]
        self.failures: list[Exception] = []  # Raised, in order, by the next calls

    async def _enter(self) -> None:
        await asyncio.sleep(0)
        if self.failures:
            raise self.failures.pop(0)

    def _ensure_unique(self, candidate: dict[str, Any]) -> None:
        for field in self.unique_fields:
            value = get_value(candidate, field)
            if value is None:
                continue
            for doc in self.docs:
                if doc is not candidate and get_value(doc, field) == value:
                    raise DuplicateKeyError(
                        f"E11000 duplicate key error collection: {self.name} dup key: {{ {field}: {value!r} }}",
                        11000,
                        {"keyPattern": {field: 1}, "keyValue": {field: value}},
                    )

    async def create_index(self, keys: list[tuple[str, int]], unique: bool = False, **_: Any) -> str:
        if unique and len(keys) == 1:
            self.unique_fields.append(keys[0][0])
        return "_".join(f"{k}_{d}" for k, d in keys)

    async def insert_one(self, document: dict[str, Any]) -> SimpleNamespace:
        await self._enter()
        doc = copy.deepcopy(document)
        doc.setdefault("_id", uuid4())
        self._ensure_unique(doc)
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        await self._enter()
        for doc in self.docs:
            if matches(doc, query):
                return copy.deepcopy(doc)
        return None

    async def find_one_and_update(
        self,
        query: dict[str, Any],
        update: dict[str, Any],
        upsert: bool = False,
        return_document: bool = ReturnDocument.BEFORE,
    ) -> dict[str, Any] | None:
        await self._enter()
        doc = next((d for d in self.docs if matches(d, query)), None)
        before = copy.deepcopy(doc)
        if doc is None:
            if not upsert:
                return None
            doc = copy.deepcopy(query)
            doc.update(copy.deepcopy(update.get("$setOnInsert", {})))
            doc.setdefault("_id", uuid4())
            self._ensure_unique(doc)
            self.docs.append(doc)
        apply_update(doc, update)
        return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else before

    async def update_one(self, query: dict[str, Any], update: dict[str, Any]) -> SimpleNamespace:
        await self._enter()
        doc = next((d for d in self.docs if matches(d, query)), None)
        if doc is None:
            return SimpleNamespace(matched_count=0, modified_count=0)
        apply_update(doc, update)
        return SimpleNamespace(matched_count=1, modified_count=1)

    async def count_documents(self, query: dict[str, Any]) -> int:
        await self._enter()
        return sum(1 for doc in self.docs if matches(doc, query))

    def find(self, query: dict[str, Any]) -> "FakeCursor":
        return FakeCursor([copy.deepcopy(d) for d in self.docs if matches(d, query)])


class FakeCursor:
    def __init__(self, docs: list[dict[str, Any]]) -> None:
        self._docs = docs

    def sort(self, key: str, direction: int) -> "FakeCursor":
        self._docs.sort(key=lambda d: get_value(d, key), reverse=direction < 0)
        return self

    def skip(self, count: int) -> "FakeCursor":
        self._docs = self._docs[count:]
        return self

    def limit(self, count: int) -> "FakeCursor":
        self._docs = self._docs[:count]
        return self

    def __aiter__(self) -> "FakeCursor":
        return self

    async def __anext__(self) -> dict[str, Any]:
        if not self._docs:
            raise StopAsyncIteration
        return self._docs.pop(0)


class FakeDatabase:
    def __init__(self, name: str) -> None:
        self.name = name
        self._collections: dict[str, FakeCollection] = {}

    def get_collection(self, name: str) -> FakeCollection:
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]


@pytest.fixture
def config():
    """Configuration with a fixed timezone and no .env influence on the tested values."""
    return Config(
        database_url="mongodb://localhost:27017/ellcworth_test",
        reference_prefix="ELX",
        reference_timezone="UTC",
        transition_attempts=3,
    )


@pytest.fixture
def database():
    return FakeDatabase("ellcworth_test")


@pytest.fixture
def counters(database):
    return database.get_collection("counters")


@pytest.fixture
def shipments(database):
    return database.get_collection("shipments")


@pytest_asyncio.fixture
async def core(config, database, monkeypatch):
    """Started core whose references are stamped with 2025-01-15."""
    monkeypatch.setattr("ellcworth.core.modules.shipment.service.today_in", lambda _tz: REFERENCE_DAY)
    instance = Core(config, database)
    async with instance.lifespan():
        yield instance


@pytest.fixture
def lead_payload():
    """Anonymous quote request, as sent from the public website."""
    return {
        "transport_mode": "RoRo",
        "status": "request_received",
        "shipper": {"name": "A"},
    }


@pytest.fixture
def booking_payload():
    """Booking with every field an operational shipment needs."""
    return {
        "owner_ref": str(OWNER_ID),
        "transport_mode": "RoRo",
        "shipper": {"name": "Kwame Mensah", "address": "12 Dock Road, London", "email": "kwame@example.com"},
        "consignee": {"name": "Ama Mensah", "address": "4 Harbour St, Tema"},
        "ports": {"origin_port": "Tilbury", "destination_port": "Tema"},
        "cargo": {"description": "Toyota Corolla 2015", "vehicle": {"make": "Toyota", "vin": "JT1234567890"}},
    }
