"""Product database table model."""

from decimal import Decimal

from sqlalchemy import Column, Integer, Numeric, String
from sqlmodel import Field, SQLModel


class ProductTable(SQLModel, table=True):
    """Database persistence model for products.

    Maps onto ``Products(Id PK, ProductName, UnitPrice)``. It's separate from
    the domain entity so the wire format and the column names can differ.
    """

    __tablename__ = "Products"

    id: int = Field(
        sa_column=Column("Id", Integer, primary_key=True, autoincrement=False)
    )
    product_name: str = Field(
        sa_column=Column("ProductName", String, nullable=False)
    )
    unit_price: Decimal = Field(
        sa_column=Column("UnitPrice", Numeric(18, 2), nullable=False)
    )
