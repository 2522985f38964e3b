"""
Persistent Storage Module.

Provides SQLite-backed persistence for:
- Auctions (append-only table keyed by index)
- Audit records (AuctionCreated, AuctionEnded with settlement splits)
- Ledger metadata
"""

from aucengine.core.storage.sqlite_adapter import SQLiteAdapter
from aucengine.core.storage.storage_manager import StorageManager

__all__ = ["SQLiteAdapter", "StorageManager"]
