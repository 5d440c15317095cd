"""
Transaction store interface and its SQLite implementation.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol

from .exceptions import StoreUnavailableError, ValidationError

logger = logging.getLogger(__name__)

# Database file location (working directory)
DB_FILE = "inventory_transactions.db"

_COLUMNS = (
    'id', 'product_id', 'product_name', 'category', 'location',
    'transaction_type', 'quantity_change', 'previous_quantity',
    'new_quantity', 'cost', 'expiry_date', 'user_id', 'user_name',
    'group_id', 'timestamp', 'metadata',
)


class TransactionStore(Protocol):
    """Durable, append-only source of truth for transaction documents."""

    def insert(self, document: Dict[str, Any]) -> None:
        ...

    def query(
        self,
        group_id: Optional[str],
        start: Optional[int] = None,
        end: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Documents for a group, newest first."""
        ...


class SQLiteTransactionStore:
    """
    Transaction store backed by a SQLite file.

    Constraint violations on insert surface as ValidationError and every
    other sqlite3 failure as StoreUnavailableError. The store does not retry.
    """

    def __init__(self, db_path: str = DB_FILE, timeout: float = 5.0):
        self.db_path = db_path
        self.timeout = timeout
        self._initialized = False

    def get_connection(self) -> sqlite3.Connection:
        """
        Get a connection to the SQLite database.

        Returns:
            sqlite3.Connection: Database connection with row_factory set to Row
        """
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def get_cursor(self) -> Iterator[sqlite3.Cursor]:
        """
        Context manager for database operations with automatic commit/rollback.

        Usage:
            with store.get_cursor() as cursor:
                cursor.execute("INSERT INTO ...")
        """
        try:
            conn = self.get_connection()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Cannot open transaction store: {e}") from e

        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreUnavailableError(f"Transaction store error: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize(self) -> None:
        """
        Create the transaction table if it doesn't exist.
        """
        with self.get_cursor() as cursor:
            cursor.executescript("""
                -- Append-only inventory transaction log
                CREATE TABLE IF NOT EXISTS inventory_transactions (
                    id TEXT PRIMARY KEY,
                    product_id TEXT NOT NULL,
                    product_name TEXT NOT NULL,
                    category TEXT NOT NULL,
                    location TEXT NOT NULL,
                    transaction_type TEXT NOT NULL,
                    quantity_change REAL NOT NULL,
                    previous_quantity REAL NOT NULL,
                    new_quantity REAL NOT NULL,
                    cost REAL,
                    expiry_date TEXT,
                    user_id TEXT NOT NULL,
                    user_name TEXT NOT NULL,
                    group_id TEXT,
                    timestamp INTEGER NOT NULL,
                    metadata TEXT
                );

                -- Indexes for group-scoped time-window reads
                CREATE INDEX IF NOT EXISTS idx_transactions_group_time
                    ON inventory_transactions(group_id, timestamp);
                CREATE INDEX IF NOT EXISTS idx_transactions_product
                    ON inventory_transactions(product_id);
            """)
        self._initialized = True

    def ensure_initialized(self) -> None:
        """Create the schema on first use."""
        if not self._initialized:
            self.initialize()

    def insert(self, document: Dict[str, Any]) -> None:
        """
        Append a transaction document.

        Args:
            document: Transaction fields as produced by Transaction.to_document()

        Raises:
            ValidationError: A transaction with the same id already exists
        """
        self.ensure_initialized()

        row = dict(document)
        row['metadata'] = json.dumps(row.get('metadata') or {})
        placeholders = ', '.join('?' for _ in _COLUMNS)

        with self.get_cursor() as cursor:
            try:
                cursor.execute(
                    f"INSERT INTO inventory_transactions ({', '.join(_COLUMNS)}) "
                    f"VALUES ({placeholders})",
                    tuple(row.get(column) for column in _COLUMNS)
                )
            except sqlite3.IntegrityError as e:
                raise ValidationError(
                    f"Transaction {row.get('id')} rejected by the store: {e}") from e

    def query(
        self,
        group_id: Optional[str],
        start: Optional[int] = None,
        end: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Read transaction documents for a group.

        Args:
            group_id: Group to read (None = personal scope)
            start: Inclusive lower timestamp bound (ms)
            end: Inclusive upper timestamp bound (ms)
            limit: Maximum number of documents

        Returns:
            List of documents ordered by timestamp, newest first
        """
        self.ensure_initialized()

        if group_id is None:
            query = "SELECT * FROM inventory_transactions WHERE group_id IS NULL"
            params: List[Any] = []
        else:
            query = "SELECT * FROM inventory_transactions WHERE group_id = ?"
            params = [group_id]

        if start is not None:
            query += " AND timestamp >= ?"
            params.append(start)
        if end is not None:
            query += " AND timestamp <= ?"
            params.append(end)

        query += " ORDER BY timestamp DESC"

        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        logger.debug("Store query group=%s start=%s end=%s limit=%s",
                     group_id, start, end, limit)

        with self.get_cursor() as cursor:
            cursor.execute(query, params)
            rows = [dict(row) for row in cursor.fetchall()]

        for row in rows:
            row['metadata'] = json.loads(row['metadata']) if row.get('metadata') else {}
        return rows

    def count(self) -> int:
        """Total number of stored transactions (for diagnostics)."""
        self.ensure_initialized()
        with self.get_cursor() as cursor:
            cursor.execute("SELECT COUNT(*) FROM inventory_transactions")
            return cursor.fetchone()[0]
