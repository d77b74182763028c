from typing import Any
from uuid import uuid4

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from ellcworth.core.core import Service
from ellcworth.core.db import store_errors
from ellcworth.core.modules.counter.models import Counter
from ellcworth.errors import ValidationError

logger = structlog.get_logger(__name__)


class CounterService(Service):
    """Hands out strictly increasing sequence numbers per key."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("counters")

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._collection.create_index([("key", 1)], unique=True)

    async def allocate(self, key: str) -> int:
        """Atomically increment and return the next sequence number for a key.

        The counter is created at 1 if it does not exist yet. Every call goes to
        the store; a value is never reused or computed locally.

        Raises:
            ValidationError: If the key is blank
            StoreUnavailableError: If the store cannot be reached
        """
        if not key or not key.strip():
            raise ValidationError.for_field("key", "must not be empty")

        try:
            seq = await self._increment(key)
        except DuplicateKeyError:
            # Two first-time upserts for the same key raced on the unique index;
            # the document now exists, so the retried increment cannot conflict.
            logger.info("counter_upsert_race", key=key)
            seq = await self._increment(key)

        logger.debug("sequence_allocated", key=key, seq=seq)
        return seq

    async def current(self, key: str) -> int:
        """Get the current sequence number without incrementing."""
        with store_errors("counter read"):
            doc = await self._collection.find_one({"key": key})
        if doc:
            return Counter.model_validate(doc).seq
        return 0

    async def _increment(self, key: str) -> int:
        with store_errors("counter increment"):
            result = await self._collection.find_one_and_update(
                {"key": key},
                {"$inc": {"seq": 1}, "$setOnInsert": {"_id": uuid4()}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        # If it was just created (upserted), seq will be 1
        return int(result["seq"])
