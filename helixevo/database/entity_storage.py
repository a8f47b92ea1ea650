from __future__ import annotations

from abc import ABC, abstractmethod

from helixevo.genome.entity import Entity


class EntityStorage(ABC):
    """Abstract interface for persisting :class:`Entity` objects.

    The store is the sole arbiter of entity identity. No transactional
    guarantees hold across calls: concurrent writes to the same id are
    last-write-wins. Backends signal connectivity problems with
    :class:`helixevo.exceptions.StoreUnavailableError`.
    """

    @abstractmethod
    async def get(self, entity_id: str) -> Entity | None: ...

    @abstractmethod
    async def put(self, entity: Entity) -> str:
        """Persist *entity*, assigning an id when it has none; returns the id."""

    @abstractmethod
    async def top_n(self, n: int) -> list[Entity]:
        """Up to *n* entities ordered by score, highest first."""

    @abstractmethod
    async def random_n(self, n: int) -> list[Entity]:
        """Up to *n* distinct entities sampled uniformly."""

    @abstractmethod
    async def count(self) -> int: ...

    async def has_data(self) -> bool:
        return await self.count() > 0

    async def close(self) -> None:
        """Release backend resources. Default: nothing to release."""
