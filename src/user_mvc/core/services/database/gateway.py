"""Persistence gateway: the only component that talks to the relational store."""

import re
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from loguru import logger
from sqlalchemy import Connection, Engine, StaticPool, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlmodel import create_engine

from src.user_mvc.core.errors import PersistenceError, StoreConnectionError
from src.user_mvc.runtime.config.config_data import DatabaseConfig

_PLACEHOLDER = re.compile(r"\?")


class PersistenceGateway:
    """Parameterized execute/query primitives over a pooled SQLAlchemy engine.

    Statements are written with ``?`` positional placeholders and rewritten to
    the driver's paramstyle before execution. Every call checks a connection
    out of the engine pool and returns it when done, so one gateway can be
    shared by concurrent requests.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @classmethod
    def from_config(
        cls, db_config: DatabaseConfig, environment: str = "development"
    ) -> "PersistenceGateway":
        """Build the engine from the configured store coordinates."""
        logger.info("Configuring database engine for environment: {}", environment)
        url = make_url(db_config.connection_string)

        engine_kwargs: dict[str, Any] = {
            "echo": False,
            "pool_pre_ping": True,
            "connect_args": cls._get_connect_args(db_config, environment),
        }
        if url.get_backend_name() == "sqlite":
            if url.database in (None, "", ":memory:"):
                # one shared connection, otherwise every checkout sees an empty db
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs.update(
                {
                    "pool_size": db_config.pool_size,
                    "max_overflow": db_config.max_overflow,
                    "pool_timeout": db_config.pool_timeout,
                    "pool_recycle": db_config.pool_recycle,
                }
            )

        engine = create_engine(url, **engine_kwargs)
        logger.info("Database engine initialized for {}", engine.url)
        return cls(engine)

    @staticmethod
    def _get_connect_args(db_config: DatabaseConfig, environment: str) -> dict:
        connect_args: dict[str, Any] = {}

        if db_config.is_sqlite:
            connect_args.update(
                {
                    "check_same_thread": False,  # requests run on a thread pool
                    "timeout": 20,  # lock timeout
                }
            )
            if environment == "production":
                logger.warning(
                    "SQLite is not recommended for production use. "
                    "Consider PostgreSQL for better performance and reliability."
                )
        elif make_url(db_config.url).get_backend_name() == "postgresql":
            connect_args.update(
                {
                    "application_name": f"{environment}_user_mvc",
                    "connect_timeout": 30,
                }
            )

        return connect_args

    @property
    def engine(self) -> Engine:
        return self._engine

    def connect(self) -> Connection:
        """Check out a connection from the pool.

        Raises:
            StoreConnectionError: The store is unreachable or rejected the credentials.
        """
        try:
            return self._engine.connect()
        except SQLAlchemyError as e:
            logger.error(
                "Could not connect to the store",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise StoreConnectionError(f"Could not connect to the store: {e}") from e

    @contextmanager
    def _connection(self, *, begin: bool) -> Iterator[Connection]:
        conn = self.connect()
        try:
            if begin:
                with conn.begin():
                    yield conn
            else:
                yield conn
        except DBAPIError as e:
            if e.connection_invalidated:
                logger.error("Store connection lost during statement: {}", e)
                raise StoreConnectionError(f"Store connection lost: {e}") from e
            logger.error(
                "Statement failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise PersistenceError(f"Statement failed: {e}") from e
        except SQLAlchemyError as e:
            logger.error("Statement failed: {}", e)
            raise PersistenceError(f"Statement failed: {e}") from e
        finally:
            conn.close()

    def _bind(self, statement: str, params: Sequence[Any]) -> tuple[str, Any]:
        """Rewrite ``?`` placeholders to the driver's paramstyle."""
        values = tuple(params)
        style = self._engine.dialect.paramstyle

        if style == "qmark":
            return statement, values
        if style in ("format", "pyformat"):
            # drivers only collapse %% back to % when parameters are bound
            if not values:
                return statement, values
            escaped = statement.replace("%", "%%")
            return _PLACEHOLDER.sub("%s", escaped), values
        if style == "numeric":
            counter = iter(range(1, len(values) + 1))
            return _PLACEHOLDER.sub(lambda _: f":{next(counter)}", statement), values
        if style == "named":
            counter = iter(range(1, len(values) + 1))
            bound = _PLACEHOLDER.sub(lambda _: f":p{next(counter)}", statement)
            return bound, {f"p{i}": value for i, value in enumerate(values, start=1)}
        raise PersistenceError(f"Unsupported driver paramstyle: {style}")

    def execute(self, statement: str, params: Sequence[Any] = ()) -> int:
        """Run a write statement in its own transaction.

        Returns:
            The number of affected rows.
        """
        with self._connection(begin=True) as conn:
            result = conn.exec_driver_sql(*self._bind(statement, params))
            return result.rowcount

    def insert(
        self, statement: str, params: Sequence[Any] = (), *, returning: str = "id"
    ) -> int:
        """Run an INSERT and return the identity the store assigned to the new row."""
        with self._connection(begin=True) as conn:
            use_returning = conn.dialect.insert_returning
            if use_returning:
                statement = f"{statement} RETURNING {returning}"
            result = conn.exec_driver_sql(*self._bind(statement, params))
            identity = result.scalar_one() if use_returning else result.lastrowid

        if identity is None:
            raise PersistenceError("The store did not report an identity for the new row")
        return int(identity)

    def query(self, statement: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Run a read statement.

        Returns:
            Rows as column-name to value mappings, empty when nothing matched.
        """
        with self._connection(begin=False) as conn:
            result = conn.exec_driver_sql(*self._bind(statement, params))
            return [dict(row) for row in result.mappings()]

    def health_check(self) -> bool:
        """Perform a health check on the database connection."""
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
                return True
        except SQLAlchemyError as e:
            logger.error(
                "Database health check failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return False

    def get_pool_status(self) -> dict:
        """Get current connection pool status for monitoring."""
        pool = self._engine.pool

        def stat(name: str) -> int:
            value = getattr(pool, name, 0)
            return value() if callable(value) else value

        return {
            "size": stat("size"),
            "checked_in": stat("checkedin"),
            "checked_out": stat("checkedout"),
            "overflow": stat("overflow"),
        }

    def dispose(self) -> None:
        """Drop every pooled connection; the next call reconnects."""
        logger.warning("Disposing database connection pool")
        self._engine.dispose()
