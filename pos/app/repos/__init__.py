"""Storage contract and the in-memory backend."""

from .memory_storage import MemoryStorage
from .seed import seed_if_empty
from .storage import Storage

__all__ = ["MemoryStorage", "Storage", "seed_if_empty"]
