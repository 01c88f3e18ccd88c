"""
Storage manager for the product table.
"""

import logging
import os
import sqlite3
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional

from product_catalog.shared import format_price

logger = logging.getLogger(__name__)


class StorageConnectionError(RuntimeError):
    """The store could not be reached after every retry."""


@dataclass
class StorageConfig:
    database_url: str = "sqlite:///data/products.db"
    max_retries: int = 10
    retry_interval: float = 5.0
    seed_products: list = field(default_factory=list)

    @classmethod
    def from_dict(cls, config: dict) -> "StorageConfig":
        database_url = config.get("database_url", cls.database_url)
        if os.environ.get("DB_PATH"):
            database_url = f"sqlite:///{os.environ['DB_PATH']}"

        return cls(
            database_url=database_url,
            max_retries=int(config.get("max_retries", cls.max_retries)),
            retry_interval=float(config.get("retry_interval", cls.retry_interval)),
            seed_products=list(config.get("seed_products", [])),
        )


class StorageManager:
    """
    Owns the connection to the product store.

    Call connect() before any query.
    """

    def __init__(
        self,
        config: StorageConfig,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self._db_conn: Optional[sqlite3.Connection] = None
        self._db_lock = threading.Lock()
        self._sleep = sleep

    @property
    def db_path(self) -> str:
        return self.config.database_url.replace("sqlite:///", "")

    @property
    def connected(self) -> bool:
        return self._db_conn is not None

    def connect(self):
        """
        Connect to the store, retrying at a fixed interval.

        Raises:
            StorageConnectionError: all attempts failed
        """
        max_retries = self.config.max_retries

        for attempt in range(1, max_retries + 1):
            try:
                self._open()
                logger.info(f"Connected to product store at {self.db_path}")
                return
            except (sqlite3.Error, OSError) as e:
                if attempt == max_retries:
                    logger.error(f"Failed to connect to product store: {e}")
                    raise StorageConnectionError(
                        f"Could not connect to {self.db_path} after {max_retries} attempts: {e}"
                    ) from e

                logger.warning(
                    f"Database connection attempt {attempt}/{max_retries} failed. "
                    f"Retrying in {self.config.retry_interval:g}s..."
                )
                self._sleep(self.config.retry_interval)

    def _open(self):
        db_path = self.db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row

        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS products (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    description TEXT,
                    price TEXT NOT NULL,
                    image_url TEXT,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()
        except sqlite3.Error:
            conn.close()
            raise

        self._db_conn = conn

    def _require_connection(self) -> sqlite3.Connection:
        if self._db_conn is None:
            raise RuntimeError("Storage manager is not connected")
        return self._db_conn

    def list_products(self) -> List[dict]:
        """All product rows ordered by id, price as stored (numeric string)."""
        conn = self._require_connection()
        with self._db_lock:
            rows = conn.execute("SELECT * FROM products ORDER BY id").fetchall()
        return [dict(row) for row in rows]

    def get_product(self, product_id: int) -> Optional[dict]:
        conn = self._require_connection()
        with self._db_lock:
            row = conn.execute(
                "SELECT * FROM products WHERE id = ?", (product_id,)
            ).fetchone()
        return dict(row) if row else None

    def add_product(
        self,
        name: str,
        price,
        description: str = "",
        image_url: Optional[str] = None,
    ) -> int:
        """Insert a product and return its id."""
        conn = self._require_connection()
        with self._db_lock:
            cursor = conn.execute(
                """
                INSERT INTO products (name, description, price, image_url, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (name, description, format_price(price), image_url, datetime.now(timezone.utc).isoformat()),
            )
            conn.commit()
        return cursor.lastrowid

    def count_products(self) -> int:
        conn = self._require_connection()
        with self._db_lock:
            return conn.execute("SELECT COUNT(*) FROM products").fetchone()[0]

    def seed(self, products: Optional[list] = None) -> int:
        """Insert the given (or configured) products when the table is empty."""
        products = products if products is not None else self.config.seed_products
        if not products or self.count_products() > 0:
            return 0

        for item in products:
            self.add_product(
                name=item["name"],
                price=item.get("price", 0),
                description=item.get("description", ""),
                image_url=item.get("image_url"),
            )

        logger.info(f"Seeded {len(products)} products")
        return len(products)

    def close(self):
        if self._db_conn:
            self._db_conn.close()
            self._db_conn = None
            logger.info("Product store connection closed")
