import sqlite3
import threading
from pathlib import Path
from typing import List, Optional

from aucengine.utils.logger import get_logger

logger = get_logger("storage.sqlite")


class SQLiteAdapter:
    """
    SQLite backend for persistent storage.

    Provides:
    1. Auction table keyed by index (append-only, stopped flag updated once).
    2. Audit streams: auction_created and auction_ended (with settlement splits).
    3. Ledger metadata (owner, configuration snapshot).

    Amounts are stored as TEXT because base-unit values overflow SQLite's
    64-bit INTEGER.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn_local = threading.local()

        if not db_path.parent.exists():
            db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create connection for current thread."""
        if not hasattr(self._conn_local, "conn"):
            self._conn_local.conn = sqlite3.connect(
                self.db_path,
                timeout=30.0,
                check_same_thread=False
            )
            self._conn_local.conn.row_factory = sqlite3.Row
            # Enable WAL mode for concurrent readers
            self._conn_local.conn.execute("PRAGMA journal_mode=WAL;")
            self._conn_local.conn.execute("PRAGMA synchronous=NORMAL;")
        return self._conn_local.conn

    def _init_schema(self):
        """Initialize database schema."""
        conn = self._get_conn()
        with conn:
            # 1. Auctions
            conn.execute("""
                CREATE TABLE IF NOT EXISTS auctions (
                    auction_index INTEGER PRIMARY KEY,
                    seller TEXT NOT NULL,
                    starting_price TEXT NOT NULL,
                    final_price TEXT NOT NULL,
                    start_at INTEGER NOT NULL,
                    ends_at INTEGER NOT NULL,
                    discount_rate TEXT NOT NULL,
                    item TEXT NOT NULL,
                    stopped INTEGER NOT NULL DEFAULT 0,
                    winner TEXT
                )
            """)

            # 2. AuctionCreated stream
            conn.execute("""
                CREATE TABLE IF NOT EXISTS auction_created (
                    auction_index INTEGER PRIMARY KEY,
                    item TEXT NOT NULL,
                    starting_price TEXT NOT NULL,
                    duration INTEGER NOT NULL,
                    timestamp INTEGER NOT NULL
                )
            """)

            # 3. AuctionEnded stream, one row per settlement
            conn.execute("""
                CREATE TABLE IF NOT EXISTS auction_ended (
                    auction_index INTEGER PRIMARY KEY,
                    seller TEXT NOT NULL,
                    winner TEXT NOT NULL,
                    final_price TEXT NOT NULL,
                    tendered TEXT NOT NULL,
                    fee TEXT NOT NULL,
                    seller_proceeds TEXT NOT NULL,
                    refund TEXT NOT NULL,
                    timestamp INTEGER NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_ended_ts ON auction_ended(timestamp);")

            # 4. Ledger metadata
            conn.execute("""
                CREATE TABLE IF NOT EXISTS ledger_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """)

    # =========================================================================
    # Metadata
    # =========================================================================

    def set_meta(self, key: str, value: str):
        conn = self._get_conn()
        with conn:
            conn.execute("INSERT OR REPLACE INTO ledger_meta (key, value) VALUES (?, ?)", (key, value))

    def get_meta(self, key: str) -> Optional[str]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT value FROM ledger_meta WHERE key = ?", (key,))
        row = cursor.fetchone()
        return row['value'] if row else None

    # =========================================================================
    # Auction Operations
    # =========================================================================

    def insert_auction(self, auction: dict, created: dict):
        """
        Atomically insert a new auction and its AuctionCreated record.

        Raises:
            sqlite3.IntegrityError: If the index already exists
        """
        conn = self._get_conn()
        with conn:
            conn.execute(
                """
                INSERT INTO auctions (
                    auction_index, seller, starting_price, final_price,
                    start_at, ends_at, discount_rate, item, stopped, winner
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    auction["index"],
                    auction["seller"],
                    str(auction["starting_price"]),
                    str(auction["final_price"]),
                    auction["start_at"],
                    auction["ends_at"],
                    str(auction["discount_rate"]),
                    auction["item"],
                    int(auction["stopped"]),
                    auction["winner"],
                )
            )
            conn.execute(
                "INSERT INTO auction_created (auction_index, item, starting_price, duration, timestamp) VALUES (?, ?, ?, ?, ?)",
                (
                    created["index"],
                    created["item"],
                    str(created["starting_price"]),
                    created["duration"],
                    created["timestamp"],
                )
            )

    def stop_auction(self, settlement: dict) -> bool:
        """
        Atomically mark an auction stopped and record its settlement.

        Returns:
            False if the stored auction is missing or already stopped;
            nothing is written in that case
        """
        conn = self._get_conn()
        with conn:
            cursor = conn.execute(
                "UPDATE auctions SET stopped = 1, final_price = ?, winner = ? WHERE auction_index = ? AND stopped = 0",
                (str(settlement["final_price"]), settlement["winner"], settlement["index"])
            )
            if cursor.rowcount != 1:
                return False

            conn.execute(
                """
                INSERT INTO auction_ended (
                    auction_index, seller, winner, final_price, tendered,
                    fee, seller_proceeds, refund, timestamp
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    settlement["index"],
                    settlement["seller"],
                    settlement["winner"],
                    str(settlement["final_price"]),
                    str(settlement["tendered"]),
                    str(settlement["fee"]),
                    str(settlement["seller_proceeds"]),
                    str(settlement["refund"]),
                    settlement["settled_at"],
                )
            )
        return True

    def get_all_auctions(self) -> List[dict]:
        """Get all auctions ordered by index."""
        conn = self._get_conn()
        cursor = conn.execute("SELECT * FROM auctions ORDER BY auction_index ASC")
        return [
            {
                "index": row["auction_index"],
                "seller": row["seller"],
                "starting_price": int(row["starting_price"]),
                "final_price": int(row["final_price"]),
                "start_at": row["start_at"],
                "ends_at": row["ends_at"],
                "discount_rate": int(row["discount_rate"]),
                "item": row["item"],
                "stopped": bool(row["stopped"]),
                "winner": row["winner"],
            }
            for row in cursor
        ]

    def get_created_records(self) -> List[dict]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT * FROM auction_created ORDER BY auction_index ASC")
        return [
            {
                "index": row["auction_index"],
                "item": row["item"],
                "starting_price": int(row["starting_price"]),
                "duration": row["duration"],
                "timestamp": row["timestamp"],
            }
            for row in cursor
        ]

    def get_ended_records(self) -> List[dict]:
        """Get settlements in the order they were committed."""
        conn = self._get_conn()
        cursor = conn.execute("SELECT * FROM auction_ended ORDER BY timestamp ASC, rowid ASC")
        return [
            {
                "index": row["auction_index"],
                "seller": row["seller"],
                "winner": row["winner"],
                "final_price": int(row["final_price"]),
                "tendered": int(row["tendered"]),
                "fee": int(row["fee"]),
                "seller_proceeds": int(row["seller_proceeds"]),
                "refund": int(row["refund"]),
                "settled_at": row["timestamp"],
            }
            for row in cursor
        ]

    def close(self):
        """Close the connection owned by the current thread."""
        conn = getattr(self._conn_local, "conn", None)
        if conn is not None:
            conn.close()
            del self._conn_local.conn
