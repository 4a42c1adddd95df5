"""Core infrastructure services."""

from .database.db_manage import DbManageService
from .database.gateway import PersistenceGateway

__all__ = ["DbManageService", "PersistenceGateway"]
