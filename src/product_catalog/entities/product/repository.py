"""Product repository for data access operations."""

from loguru import logger
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from src.product_catalog.core.errors import ConflictError, NotFoundError

from .entity import Product
from .table import ProductTable


class ProductRepository:
    """Data-access layer for products.

    The repository never commits; the caller owns the session and its transaction.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_all(self) -> list[Product]:
        """Return every product ordered by id."""
        statement = select(ProductTable).order_by(ProductTable.id)
        rows = self._session.exec(statement).all()
        return [Product.model_validate(row) for row in rows]

    def get(self, product_id: int) -> Product | None:
        row = self._session.get(ProductTable, product_id)
        if row is None:
            return None
        return Product.model_validate(row)

    def exists(self, product_id: int) -> bool:
        return self._session.get(ProductTable, product_id) is not None

    def count(self) -> int:
        return self._session.exec(select(func.count()).select_from(ProductTable)).one()

    def create(self, product: Product) -> Product:
        """Insert a new product. Raises ConflictError if the id is taken."""
        if self.exists(product.id):
            raise ConflictError(product.id)

        row = ProductTable.model_validate(product.model_dump())
        self._session.add(row)
        try:
            self._session.flush()
        except IntegrityError:
            # Another writer inserted the same id after the existence check
            self._session.rollback()
            raise ConflictError(product.id) from None
        self._session.refresh(row)
        logger.debug("Created product {}", product.id)
        return Product.model_validate(row)

    def add_all(self, products: list[Product]) -> None:
        """Insert products without existence checks; used for seeding."""
        self._session.add_all(
            ProductTable.model_validate(product.model_dump()) for product in products
        )
        self._session.flush()

    def update(self, product: Product) -> Product:
        """Replace the stored product. Raises NotFoundError if it does not exist."""
        row = self._session.get(ProductTable, product.id)
        if row is None:
            raise NotFoundError(product.id)

        row.product_name = product.product_name
        row.unit_price = product.unit_price
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        logger.debug("Updated product {}", product.id)
        return Product.model_validate(row)

    def delete(self, product_id: int) -> bool:
        """Delete a product. Returns False when nothing matched."""
        row = self._session.get(ProductTable, product_id)
        if row is None:
            return False

        self._session.delete(row)
        self._session.flush()
        logger.debug("Deleted product {}", product_id)
        return True
