class ProductServiceError(Exception):
    """Base class for errors raised by the product service."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(ProductServiceError):
    """Malformed path parameter or request body."""


class StoreError(ProductServiceError):
    """Database failure: connectivity, bad statement or constraint violation."""


class NotFoundError(StoreError):
    """Lookup by id matched no row."""
