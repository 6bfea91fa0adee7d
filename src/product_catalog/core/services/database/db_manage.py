"""Schema creation, seeding and explicit schema resets."""

import hashlib
from datetime import UTC, datetime
from decimal import Decimal

import sqlalchemy as sa
from loguru import logger
from sqlmodel import Field, Session, SQLModel

from src.product_catalog.core.errors import SchemaMismatchError
from src.product_catalog.core.services.database.db_session import DbSessionService
from src.product_catalog.entities.product import Product, ProductRepository, ProductTable
from src.product_catalog.runtime.config.config_data import ConfigData

SEED_PRODUCTS = (
    Product(id=1, product_name="Chai", unit_price=Decimal("10")),
    Product(id=2, product_name="Chang", unit_price=Decimal("11")),
    Product(id=3, product_name="Aniseed Syrup", unit_price=Decimal("12")),
)


class SchemaVersionTable(SQLModel, table=True):
    """Bookkeeping row holding the fingerprint of the schema that was created."""

    __tablename__ = "SchemaVersion"

    id: int = Field(default=1, primary_key=True)
    fingerprint: str
    applied_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


# Tables whose shape is tracked by the fingerprint
MODEL_TABLES: tuple[type[SQLModel], ...] = (ProductTable,)


def schema_fingerprint(models: tuple[type[SQLModel], ...] = MODEL_TABLES) -> str:
    """Hash table names, column names, types, keys and nullability."""
    digest = hashlib.sha256()
    for model in sorted(models, key=lambda m: m.__tablename__):
        table = model.__table__
        digest.update(table.name.encode())
        for column in sorted(table.columns, key=lambda c: c.name):
            digest.update(
                f"|{column.name}:{column.type}:{column.primary_key}:{column.nullable}".encode()
            )
    return digest.hexdigest()


class DbManageService:
    def __init__(self, config: ConfigData, database_service: DbSessionService):
        self._config = config
        self._database_service = database_service
        self._engine = database_service.engine

    def create_all(self) -> None:
        """Create all database tables that do not exist yet."""
        SQLModel.metadata.create_all(self._engine)
        logger.info("Database initialized with tables.")

    def drop_all(self) -> None:
        SQLModel.metadata.drop_all(self._engine)
        logger.warning("Dropped all database tables.")

    def stored_fingerprint(self) -> str | None:
        if not sa.inspect(self._engine).has_table(SchemaVersionTable.__tablename__):
            return None
        with Session(self._engine) as session:
            row = session.get(SchemaVersionTable, 1)
            return row.fingerprint if row else None

    def _record_fingerprint(self, fingerprint: str) -> None:
        with self._database_service.session_scope() as session:
            row = session.get(SchemaVersionTable, 1)
            if row is None:
                row = SchemaVersionTable(fingerprint=fingerprint)
            else:
                row.fingerprint = fingerprint
                row.applied_at = datetime.now(UTC)
            session.add(row)

    def initialize(self) -> int:
        """Ensure the schema exists and seed an empty product table.

        Running against an up-to-date, populated database is a no-op. When the
        stored fingerprint differs from the models the tables are only rebuilt
        if ``recreate_on_model_change`` is enabled outside production;
        otherwise SchemaMismatchError is raised.

        Returns the number of seeded products.
        """
        current = schema_fingerprint()
        stored = self.stored_fingerprint()
        has_products = sa.inspect(self._engine).has_table(ProductTable.__tablename__)

        if has_products and stored is not None and stored != current:
            db_config = self._config.database
            if db_config.recreate_on_model_change and self._config.app.environment != "production":
                logger.warning(
                    "Model schema changed ({} -> {}); recreating tables, all data is lost",
                    stored[:12],
                    current[:12],
                )
                self.drop_all()
            else:
                raise SchemaMismatchError(stored, current)
        elif has_products and stored is None:
            logger.warning("Existing tables carry no schema fingerprint; adopting current models")

        self.create_all()
        if stored != current:
            self._record_fingerprint(current)

        if not self._config.database.seed_on_init:
            return 0
        return self.seed()

    def seed(self) -> int:
        """Insert the seed products if the product table is empty."""
        with self._database_service.session_scope() as session:
            repository = ProductRepository(session)
            if repository.count() > 0:
                logger.info("Product table already populated; skipping seed")
                return 0
            repository.add_all(list(SEED_PRODUCTS))
        logger.info("Seeded {} products", len(SEED_PRODUCTS))
        return len(SEED_PRODUCTS)

    def reset_schema(self) -> int:
        """Drop and recreate every table, then seed. Destroys all data."""
        logger.warning("Resetting database schema at {}", self._engine.url)
        self.drop_all()
        self.create_all()
        self._record_fingerprint(schema_fingerprint())
        if not self._config.database.seed_on_init:
            return 0
        return self.seed()

    def seed_status(self) -> dict:
        """Report schema and row count information."""
        current = schema_fingerprint()
        stored = self.stored_fingerprint()
        has_products = sa.inspect(self._engine).has_table(ProductTable.__tablename__)
        count = 0
        if has_products:
            with Session(self._engine) as session:
                count = ProductRepository(session).count()
        return {
            "tables_present": has_products,
            "schema_current": stored == current,
            "stored_fingerprint": stored,
            "model_fingerprint": current,
            "product_count": count,
        }
