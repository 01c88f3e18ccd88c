"""
Tests for the product store.
"""

import sqlite3
from unittest.mock import patch

import pytest

from product_catalog.server.storage import StorageConfig, StorageConnectionError, StorageManager


@pytest.fixture
def storage(storage_config):
    manager = StorageManager(storage_config)
    manager.connect()
    yield manager
    manager.close()


class TestConnect:
    """Tests for the connection retry loop."""

    def test_connects_first_try(self, storage_config):
        sleeps = []
        manager = StorageManager(storage_config, sleep=sleeps.append)

        manager.connect()

        assert manager.connected
        assert sleeps == []
        manager.close()

    def test_retries_until_available(self, storage_config):
        sleeps = []
        real_conn = sqlite3.connect(":memory:", check_same_thread=False)
        manager = StorageManager(storage_config, sleep=sleeps.append)

        with patch(
            "product_catalog.server.storage.storage_manager.sqlite3.connect",
            side_effect=[
                sqlite3.OperationalError("unable to open database file"),
                sqlite3.OperationalError("unable to open database file"),
                real_conn,
            ],
        ) as mock_connect:
            manager.connect()

        assert manager.connected
        assert mock_connect.call_count == 3
        assert sleeps == [storage_config.retry_interval] * 2
        manager.close()

    def test_gives_up_after_max_retries(self, tmp_path):
        config = StorageConfig(
            database_url=f"sqlite:///{tmp_path / 'products.db'}",
            max_retries=10,
            retry_interval=5.0,
        )
        sleeps = []
        manager = StorageManager(config, sleep=sleeps.append)

        with patch(
            "product_catalog.server.storage.storage_manager.sqlite3.connect",
            side_effect=sqlite3.OperationalError("unable to open database file"),
        ) as mock_connect:
            with pytest.raises(StorageConnectionError):
                manager.connect()

        assert mock_connect.call_count == 10
        assert sleeps == [5.0] * 9
        assert not manager.connected

    def test_query_before_connect(self, storage_config):
        manager = StorageManager(storage_config)

        with pytest.raises(RuntimeError):
            manager.list_products()


class TestProducts:
    def test_empty_store(self, storage):
        assert storage.list_products() == []
        assert storage.count_products() == 0

    def test_add_and_get(self, storage):
        product_id = storage.add_product("Desk Lamp", 12.5, description="LED lamp")

        row = storage.get_product(product_id)

        assert row["name"] == "Desk Lamp"
        assert row["price"] == "12.50"
        assert row["description"] == "LED lamp"
        assert row["created_at"]

    def test_get_missing(self, storage):
        assert storage.get_product(404) is None

    def test_list_ordered_by_id(self, storage, sample_products):
        storage.seed(sample_products)

        rows = storage.list_products()

        assert [r["id"] for r in rows] == [1, 2, 3]
        assert [r["price"] for r in rows] == ["199.99", "89.50", "34.00"]

    def test_seed_only_when_empty(self, storage, sample_products):
        assert storage.seed(sample_products) == 3
        assert storage.seed(sample_products) == 0
        assert storage.count_products() == 3

    def test_seed_from_config(self, storage_config, sample_products):
        storage_config.seed_products = sample_products
        manager = StorageManager(storage_config)
        manager.connect()

        assert manager.seed() == 3
        manager.close()


class TestStorageConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DB_PATH", raising=False)
        config = StorageConfig.from_dict({})

        assert config.max_retries == 10
        assert config.retry_interval == 5.0
        assert config.database_url == "sqlite:///data/products.db"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("DB_PATH", "/tmp/catalog.db")

        config = StorageConfig.from_dict({"database_url": "sqlite:///other.db"})

        assert config.database_url == "sqlite:////tmp/catalog.db"
