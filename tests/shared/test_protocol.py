"""
Tests for the shared product record.
"""

import pytest

from product_catalog.shared.protocol import (
    Product,
    format_price,
    normalize_price,
    normalize_products,
)


class TestNormalizePrice:
    @pytest.mark.parametrize("raw,expected", [
        ("19.99", 19.99),
        ("  5.00 ", 5.0),
        ("1200", 1200.0),
        (42, 42.0),
        (3.5, 3.5),
        (None, 0.0),
    ])
    def test_conversion(self, raw, expected):
        assert normalize_price(raw) == expected

    def test_idempotent(self):
        once = normalize_price("89.50")

        assert normalize_price(once) == once
        assert normalize_price(normalize_price(once)) == once

    @pytest.mark.parametrize("raw", ["abc", "", True])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            normalize_price(raw)

    def test_format_price(self):
        assert format_price("89.5") == "89.50"
        assert format_price(34) == "34.00"


class TestProduct:
    def test_from_dict(self, sample_products):
        product = Product.from_dict(sample_products[0])

        assert product.id == 1
        assert product.name == "Wireless Headphones"
        assert product.price == 199.99
        assert product.image_url == "https://example.com/images/headphones.jpg"
        assert product.created_at == "2024-01-15T10:30:00"

    def test_missing_optional_fields(self):
        product = Product.from_dict({"id": "7", "name": "Desk Lamp", "price": "12.00"})

        assert product.id == 7
        assert product.description == ""
        assert product.image_url is None

    def test_sku(self):
        assert Product(id=7, name="Desk Lamp").sku == "PROD-0007"

    def test_normalizing_a_product_twice(self, sample_products):
        product = Product.from_dict(sample_products[1])
        again = Product.from_dict(product.to_dict())

        assert again == product
        assert again.price == 89.5

    def test_to_wire_uses_numeric_string(self, sample_products):
        product = Product.from_dict(sample_products[1])

        assert product.to_wire()["price"] == "89.50"
        assert product.to_dict()["price"] == 89.5

    def test_normalize_products(self, sample_products):
        products = normalize_products(sample_products)

        assert [p.price for p in products] == [199.99, 89.5, 34.0]
