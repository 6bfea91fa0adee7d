from dataclasses import dataclass

from src.product_catalog.core.services import DbManageService, DbSessionService
from src.product_catalog.runtime.config.config_data import ConfigData


@dataclass
class ApplicationDependencies:
    config: ConfigData
    database_service: DbSessionService
    database_manage_service: DbManageService
