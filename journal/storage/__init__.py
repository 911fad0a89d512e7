"""Storage module — dream persistence adapters."""

from journal.storage.base import DreamStore
from journal.storage.memory import MemoryDreamStore
from journal.storage.supabase import SupabaseDreamStore

__all__ = ["DreamStore", "MemoryDreamStore", "SupabaseDreamStore"]
