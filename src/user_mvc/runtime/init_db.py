"""Database initialization script."""

from src.user_mvc.core.services import DbManageService, PersistenceGateway
from src.user_mvc.runtime.context import get_config


def init_db() -> None:
    """Create all database tables."""
    config = get_config()
    gateway = PersistenceGateway.from_config(
        config.database, environment=config.app.environment
    )
    try:
        DbManageService(gateway.engine).create_all()
    finally:
        gateway.dispose()


if __name__ == "__main__":
    init_db()
