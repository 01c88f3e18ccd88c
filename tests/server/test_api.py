"""
Tests for the product REST API.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from product_catalog.server.api.server import create_app
from product_catalog.server.storage import StorageManager


@pytest.fixture
def storage(storage_config, sample_products):
    manager = StorageManager(storage_config)
    manager.connect()
    manager.seed(sample_products)
    yield manager
    manager.close()


@pytest.fixture
def client(storage):
    with TestClient(create_app(storage_manager=storage)) as test_client:
        yield test_client


class TestProductEndpoints:
    def test_list_products(self, client):
        response = client.get("/api/products")

        assert response.status_code == 200
        data = response.json()
        assert [p["id"] for p in data] == [1, 2, 3]
        assert [p["price"] for p in data] == ["199.99", "89.50", "34.00"]
        assert data[1]["image_url"] is None
        assert set(data[0]) == {"id", "name", "description", "price", "image_url", "created_at"}

    def test_get_product(self, client):
        response = client.get("/api/products/2")

        assert response.status_code == 200
        assert response.json()["name"] == "Mechanical Keyboard"

    def test_missing_product(self, client):
        response = client.get("/api/products/99")

        assert response.status_code == 404
        assert response.json() == {"error": "Product not found"}

    def test_non_integer_id_uses_error_shape(self, client):
        response = client.get("/api/products/abc")

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid value for product_id"}


    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "Backend API is running"}


class TestStorageFailures:
    @pytest.fixture
    def broken_client(self):
        storage = MagicMock()
        storage.list_products.side_effect = RuntimeError("connection lost")
        storage.get_product.side_effect = RuntimeError("connection lost")
        return TestClient(create_app(storage_manager=storage))

    def test_list_failure(self, broken_client):
        response = broken_client.get("/api/products")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch products"}

    def test_get_failure(self, broken_client):
        response = broken_client.get("/api/products/1")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch product"}
