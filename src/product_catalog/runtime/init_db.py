"""Database initialization script."""

from src.product_catalog.core.services.database.db_manage import DbManageService
from src.product_catalog.core.services.database.db_session import DbSessionService
from src.product_catalog.runtime.config.config_data import ConfigData
from src.product_catalog.runtime.context import get_config


def init_db(config: ConfigData | None = None) -> int:
    """Create all database tables and seed them; returns the number of seeded rows."""
    config = config or get_config()
    database_service = DbSessionService(config)
    try:
        return DbManageService(config, database_service).initialize()
    finally:
        database_service.dispose()


if __name__ == "__main__":
    init_db()
