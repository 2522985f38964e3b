import sqlite3
from pathlib import Path
from typing import List, Optional, Tuple

from aucengine.core.auction.auction import Auction
from aucengine.core.auction.errors import AuctionStopped, StorageConflict
from aucengine.core.ledger.events import AuctionCreatedRecord
from aucengine.core.settlement import Settlement
from aucengine.core.storage.sqlite_adapter import SQLiteAdapter
from aucengine.utils.logger import get_logger

logger = get_logger("storage.manager")


class StorageManager:
    """
    Manages persistent storage for the auction ledger.

    Coordinates data persistence using SQLite adapter.
    Handles:
    - Auction table (append-only, keyed by index)
    - Audit streams (creation records, sale records + settlement splits)
    - Metadata (owner, fee configuration)
    """

    def __init__(self, data_dir: Path, db_name: str = "auctions.db"):
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / db_name
        self.adapter = SQLiteAdapter(self.db_path)

        logger.info(f"StorageManager initialized at {self.db_path}")

    # =========================================================================
    # Metadata
    # =========================================================================

    def save_owner(self, owner: str):
        self.adapter.set_meta("owner", owner)

    def get_owner(self) -> Optional[str]:
        return self.adapter.get_meta("owner")

    def save_fee_percent(self, fee_percent: int):
        self.adapter.set_meta("fee_percent", str(fee_percent))

    def get_fee_percent(self) -> Optional[int]:
        value = self.adapter.get_meta("fee_percent")
        return int(value) if value is not None else None

    # =========================================================================
    # Ledger Support
    # =========================================================================

    def persist_creation(self, auction: Auction, created: AuctionCreatedRecord):
        """
        Atomically persist a new auction with its creation record.

        Raises:
            StorageConflict: If another ledger on this database already
                stored an auction at the same index
        """
        try:
            self.adapter.insert_auction(auction.to_dict(), created.to_dict())
        except sqlite3.IntegrityError as e:
            raise StorageConflict(auction.index) from e

    def persist_settlement(self, settlement: Settlement):
        """
        Atomically flip the stored auction to stopped and record the sale.

        Raises:
            AuctionStopped: If another ledger on this database sold it first
        """
        if not self.adapter.stop_auction(settlement.to_dict()):
            raise AuctionStopped(settlement.index)

    def load_ledger_state(self) -> Tuple[List[Auction], List[AuctionCreatedRecord], List[Settlement]]:
        """
        Load full ledger state.

        Returns:
            (auctions, created_records, settlements)
            auctions: ordered by index
            created_records: ordered by index
            settlements: ordered by commit time
        """
        auctions = [Auction.from_dict(row) for row in self.adapter.get_all_auctions()]
        created = [AuctionCreatedRecord(**row) for row in self.adapter.get_created_records()]
        settlements = [Settlement(**row) for row in self.adapter.get_ended_records()]
        return auctions, created, settlements

    def close(self):
        self.adapter.close()
