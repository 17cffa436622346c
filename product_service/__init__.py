from product_service.app import create_app
from product_service.errors import NotFoundError, StoreError, ValidationError
from product_service.model import Product, ProductStore, db

__all__ = [
    "create_app",
    "db",
    "Product",
    "ProductStore",
    "NotFoundError",
    "StoreError",
    "ValidationError",
]
