# -*- coding: utf-8 -*-
"""In-memory EntityStorage used by tests and the local runner when no
external backend is wanted. The public interface mirrors
:class:`helixevo.database.entity_storage.EntityStorage`.

Stored entities are deep copies: callers never share objects with the store.
"""
from __future__ import annotations

import asyncio
import heapq
import random
from typing import Dict, List, Optional
import uuid

from loguru import logger

from helixevo.database.entity_storage import EntityStorage
from helixevo.exceptions import StoreUnavailableError
from helixevo.genome.entity import Entity


class MemoryEntityStorage(EntityStorage):
    """Simple dict-backed storage."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        # id -> Entity
        self._data: Dict[str, Entity] = {}
        self._lock = asyncio.Lock()
        self._rng = rng or random.Random()
        # Flip to simulate an unreachable backend.
        self.unavailable = False

    def _check_available(self) -> None:
        if self.unavailable:
            raise StoreUnavailableError("MemoryEntityStorage is unavailable")

    # ------------------------------------------------------------------
    async def get(self, entity_id: str) -> Optional[Entity]:  # noqa: D401
        async with self._lock:
            self._check_available()
            e = self._data.get(entity_id)
            return e.clone() if e else None

    async def put(self, entity: Entity) -> str:  # noqa: D401
        async with self._lock:
            self._check_available()
            entity_id = entity.external_id or str(uuid.uuid4())
            stored = entity.clone()
            stored.external_id = entity_id
            if entity_id in self._data:
                logger.debug(f"[MemoryEntityStorage] overwrite id={entity_id}")
            self._data[entity_id] = stored
            return entity_id

    # --- batch helpers -------------------------------------------------

    async def top_n(self, n: int) -> List[Entity]:
        async with self._lock:
            self._check_available()
            best = heapq.nlargest(max(n, 0), self._data.values(), key=lambda e: e.score)
            return [e.clone() for e in best]

    async def random_n(self, n: int) -> List[Entity]:
        async with self._lock:
            self._check_available()
            pool = list(self._data.values())
            picked = self._rng.sample(pool, min(max(n, 0), len(pool)))
            return [e.clone() for e in picked]

    async def count(self) -> int:
        async with self._lock:
            self._check_available()
            return len(self._data)

