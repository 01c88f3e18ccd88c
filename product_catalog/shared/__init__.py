from .protocol import (
    Product,
    format_price,
    normalize_price,
    normalize_products,
)
from .config import (
    load_config,
    setup_logging,
)

__all__ = [
    "Product",
    "format_price",
    "normalize_price",
    "normalize_products",
    "load_config",
    "setup_logging",
]
