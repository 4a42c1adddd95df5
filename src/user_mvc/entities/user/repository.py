"""User record model operations."""

from loguru import logger

from src.user_mvc.core.errors import RecordStateError
from src.user_mvc.core.services.database.gateway import PersistenceGateway

from .entity import User

_INSERT_USER = "INSERT INTO users (name, age) VALUES (?, ?)"
_SELECT_USERS = "SELECT id, name, age FROM users ORDER BY id ASC"


class UserRepository:
    """Data-access layer for users."""

    def __init__(self, gateway: PersistenceGateway) -> None:
        self._gateway = gateway

    def create(self, name: str, age: int) -> int:
        """Insert one user and return the identity the store assigned to it.

        Raises:
            InvalidParameterError: ``name`` is not text or ``age`` is not an
                integer between 0 and ``MAX_AGE``.
            PersistenceError: The write failed.
            StoreConnectionError: The store could not be reached.
        """
        user = User.transient(name=name, age=age)
        identity = self._gateway.insert(_INSERT_USER, (user.name, user.age))
        logger.info("Created user {}", identity)
        return identity

    def save(self, user: User) -> User:
        """Persist a transient user and return its persisted copy."""
        if user.is_persisted:
            raise RecordStateError(f"User {user.id} is already persisted")
        return user.persisted(self.create(user.name, user.age))

    def list_all(self) -> list[User]:
        """Return every persisted user in creation (identity) order."""
        rows = self._gateway.query(_SELECT_USERS)
        return [User.model_validate(row) for row in rows]
