"""Entity: Product."""

from decimal import Decimal
from typing import Annotated, Any

from pydantic import Field, PlainSerializer

from src.product_catalog.entities._base import Entity

# Stored as NUMERIC(18,2); prices travel as JSON numbers, not decimal strings
Price = Annotated[
    Decimal,
    Field(max_digits=18, decimal_places=2),
    PlainSerializer(float, return_type=float, when_used="json"),
]


class Product(Entity):
    """Product entity representing a catalog item.

    The id is assigned by the caller and is the only lookup key.
    """

    id: int = Field(description="Unique product identifier")
    product_name: str = Field(description="Display name of the product")
    unit_price: Price = Field(description="Price of a single unit")

    def __eq__(self, other: Any) -> bool:
        """Compare products by their business attributes."""
        if not isinstance(other, Product):
            return False

        return (
            self.id == other.id
            and self.product_name == other.product_name
            and self.unit_price == other.unit_price
        )

    def __hash__(self) -> int:
        return hash((self.id, self.product_name, self.unit_price))
