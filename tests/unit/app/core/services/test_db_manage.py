"""Unit tests for schema initialization, seeding and resets."""

from decimal import Decimal

import pytest
import sqlalchemy as sa
from sqlmodel import Session

from src.product_catalog.core.errors import SchemaMismatchError
from src.product_catalog.core.services import DbManageService, DbSessionService
from src.product_catalog.core.services.database.db_manage import (
    SEED_PRODUCTS,
    SchemaVersionTable,
    schema_fingerprint,
)
from src.product_catalog.entities.product import Product, ProductRepository
from tests.fixtures.core import make_test_config


def _products(database_service: DbSessionService) -> list[Product]:
    with database_service.session_scope() as session:
        return ProductRepository(session).list_all()


def _tamper_fingerprint(database_service: DbSessionService) -> None:
    with database_service.session_scope() as session:
        row = session.get(SchemaVersionTable, 1)
        row.fingerprint = "0" * 64
        session.add(row)


class TestInitialize:
    """Test DbManageService.initialize."""

    def test_initialize_creates_tables_and_seeds(self, manage_service, database_service, seed_rows):
        seeded = manage_service.initialize()

        assert seeded == 3
        products = _products(database_service)
        assert [(p.id, p.product_name, p.unit_price) for p in products] == seed_rows

    def test_initialize_is_idempotent(self, manage_service, database_service):
        manage_service.initialize()
        seeded_again = manage_service.initialize()

        assert seeded_again == 0
        assert len(_products(database_service)) == 3

    def test_initialize_keeps_existing_data(self, manage_service, database_service):
        manage_service.initialize()
        with database_service.session_scope() as session:
            ProductRepository(session).delete(1)

        manage_service.initialize()

        assert [p.id for p in _products(database_service)] == [2, 3]

    def test_initialize_records_fingerprint(self, manage_service):
        manage_service.initialize()

        assert manage_service.stored_fingerprint() == schema_fingerprint()

    def test_initialize_without_seeding(self, database_service):
        config = make_test_config(seed_on_init=False)
        service = DbManageService(config, database_service)

        assert service.initialize() == 0
        assert _products(database_service) == []

    def test_initialize_adopts_untracked_tables(self, manage_service, database_service):
        manage_service.create_all()
        with database_service.engine.begin() as connection:
            connection.execute(sa.delete(SchemaVersionTable.__table__))

        manage_service.initialize()

        assert manage_service.stored_fingerprint() == schema_fingerprint()

    def test_schema_mismatch_raises(self, manage_service, database_service):
        manage_service.initialize()
        _tamper_fingerprint(database_service)

        with pytest.raises(SchemaMismatchError) as exc_info:
            manage_service.initialize()

        assert exc_info.value.stored == "0" * 64
        # Data untouched
        assert len(_products(database_service)) == 3

    def test_schema_mismatch_recreates_when_enabled(self, database_service):
        config = make_test_config(recreate_on_model_change=True)
        service = DbManageService(config, database_service)
        service.initialize()
        with database_service.session_scope() as session:
            ProductRepository(session).delete(2)
        _tamper_fingerprint(database_service)

        seeded = service.initialize()

        assert seeded == 3
        assert [p.id for p in _products(database_service)] == [1, 2, 3]
        assert service.stored_fingerprint() == schema_fingerprint()

    def test_schema_mismatch_never_recreates_in_production(self, database_service):
        config = make_test_config(recreate_on_model_change=True)
        config.app.environment = "production"
        service = DbManageService(config, database_service)
        service.initialize()
        _tamper_fingerprint(database_service)

        with pytest.raises(SchemaMismatchError):
            service.initialize()


class TestSeedAndReset:
    """Test seeding and the explicit reset step."""

    def test_seed_skips_populated_table(self, manage_service, database_service):
        manage_service.create_all()
        with database_service.session_scope() as session:
            ProductRepository(session).create(
                Product(id=10, product_name="Konbu", unit_price=Decimal("6"))
            )

        assert manage_service.seed() == 0
        assert [p.id for p in _products(database_service)] == [10]

    def test_reset_schema_discards_data(self, manage_service, database_service):
        manage_service.initialize()
        with database_service.session_scope() as session:
            ProductRepository(session).create(
                Product(id=4, product_name="Tofu", unit_price=Decimal("23.25"))
            )

        seeded = manage_service.reset_schema()

        assert seeded == 3
        assert [p.id for p in _products(database_service)] == [1, 2, 3]

    def test_reset_schema_clears_mismatch(self, manage_service, database_service):
        manage_service.initialize()
        _tamper_fingerprint(database_service)

        manage_service.reset_schema()

        assert manage_service.initialize() == 0

    def test_seed_status(self, manage_service):
        before = manage_service.seed_status()
        manage_service.initialize()
        after = manage_service.seed_status()

        assert before["tables_present"] is False
        assert before["product_count"] == 0
        assert after["tables_present"] is True
        assert after["schema_current"] is True
        assert after["product_count"] == 3


class TestSchemaFingerprint:
    """Test schema fingerprint calculation."""

    def test_fingerprint_is_stable(self):
        assert schema_fingerprint() == schema_fingerprint()
        assert len(schema_fingerprint()) == 64

    def test_fingerprint_depends_on_models(self):
        assert schema_fingerprint(()) != schema_fingerprint()

    def test_seed_products(self):
        assert [p.product_name for p in SEED_PRODUCTS] == ["Chai", "Chang", "Aniseed Syrup"]


def test_init_db_script(tmp_path):
    """init_db builds its own services from the given configuration."""
    from src.product_catalog.runtime.init_db import init_db

    config = make_test_config(url=f"sqlite:///{tmp_path / 'catalog.db'}")

    assert init_db(config) == 3
    assert init_db(config) == 0

    engine = sa.create_engine(f"sqlite:///{tmp_path / 'catalog.db'}")
    with Session(engine) as session:
        assert ProductRepository(session).count() == 3
    engine.dispose()
