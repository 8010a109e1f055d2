"""
Data store back-ends for the portal.

``open_store`` picks the back-end named by ``settings.STORE`` and binds it to one caller.
"""

from puppyportal.config import Settings
from puppyportal.core.schema import Caller
from puppyportal.store.base import (
    DataStore,
    StoreError,
)
from puppyportal.store.memory import MemoryStore
from puppyportal.store.supabase import SupabaseStore

_STORE_BACKENDS = ("supabase", "memory")


def open_store(
    settings: Settings, caller: Caller, memory_store: MemoryStore | None = None
) -> DataStore:
    """
    Build the data store for one request.

    Parameters
    ----------
    settings:
        Application settings; ``STORE`` selects the back-end.
    caller:
        The authenticated caller; the hosted back-end uses the caller's token so row-level security
        applies to every query.
    memory_store:
        Shared in-process store used when ``STORE`` is ``"memory"``.

    Raises
    ------
    StoreError
        If the back-end is unknown or not configured.
    """
    backend = settings.STORE.lower()
    if backend == "supabase":
        return SupabaseStore(settings, access_token=caller.access_token)
    if backend == "memory":
        return memory_store if memory_store is not None else MemoryStore()
    raise StoreError(f"Unknown store '{settings.STORE}', expected one of {_STORE_BACKENDS}")


__all__ = ["DataStore", "MemoryStore", "StoreError", "SupabaseStore", "open_store"]
