"""Exceptions raised by the product store."""


class ProductCatalogError(Exception):
    """Base class for product catalog errors."""


class NotFoundError(ProductCatalogError):
    """No product exists with the requested id."""

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class ConflictError(ProductCatalogError):
    """A product with the same id already exists."""

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product {product_id} already exists")


class SchemaMismatchError(ProductCatalogError):
    """The stored schema fingerprint does not match the current table models."""

    def __init__(self, stored: str, current: str):
        self.stored = stored
        self.current = current
        super().__init__(
            f"Database schema {stored[:12]} does not match model schema {current[:12]}; "
            "run 'db reset' to recreate the tables"
        )
