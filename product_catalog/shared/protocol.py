"""
Shared protocol definitions for the product catalog.
Defines the product record exchanged between the REST service and its clients.
"""

from dataclasses import dataclass
from typing import Any, List, Optional


def normalize_price(value: Any) -> float:
    """
    Convert a wire price (numeric string such as "19.99") to a float.

    Already-numeric values pass through, so normalizing twice is harmless.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise ValueError(f"Invalid price: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        raise ValueError(f"Invalid price: {value!r}") from None


def format_price(value: Any) -> str:
    """Render a price the way the store hands it out (two decimals, as text)."""
    return f"{normalize_price(value):.2f}"


@dataclass
class Product:
    id: int
    name: str
    description: str = ""
    price: float = 0.0
    image_url: Optional[str] = None
    created_at: Optional[str] = None

    def __post_init__(self):
        self.price = normalize_price(self.price)

    @property
    def sku(self) -> str:
        return f"PROD-{self.id:04d}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "image_url": self.image_url,
            "created_at": self.created_at,
        }

    def to_wire(self) -> dict:
        """Same as to_dict, with the price as the store's numeric string."""
        data = self.to_dict()
        data["price"] = format_price(self.price)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        return cls(
            id=int(data["id"]),
            name=data["name"],
            description=data.get("description") or "",
            price=normalize_price(data.get("price")),
            image_url=data.get("image_url"),
            created_at=data.get("created_at"),
        )


def normalize_products(items: list) -> List[Product]:
    """Parse a JSON product array into Product records."""
    return [Product.from_dict(item) for item in items]
