from helixevo.database.entity_storage import EntityStorage
from helixevo.database.memory_entity_storage import MemoryEntityStorage

__all__ = ["EntityStorage", "MemoryEntityStorage"]
