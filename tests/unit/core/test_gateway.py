"""Unit tests for the persistence gateway."""

from unittest.mock import Mock

import pytest
from sqlalchemy.exc import DBAPIError
from sqlmodel import create_engine

from src.user_mvc.core.errors import PersistenceError, StoreConnectionError
from src.user_mvc.core.services import PersistenceGateway
from src.user_mvc.runtime.config.config_data import DatabaseConfig


def _unreachable_gateway(tmp_path) -> PersistenceGateway:
    missing_dir = tmp_path / "does-not-exist" / "nested"
    return PersistenceGateway(create_engine(f"sqlite:///{missing_dir}/users.db"))


class TestExecuteAndQuery:
    """Writes and reads with positional binding."""

    def test_execute_returns_affected_rows(self, gateway: PersistenceGateway):
        gateway.execute("INSERT INTO users (name, age) VALUES (?, ?)", ("Ana", 30))
        gateway.execute("INSERT INTO users (name, age) VALUES (?, ?)", ("Bo", 41))

        affected = gateway.execute("UPDATE users SET age = ? WHERE age > ?", (50, 20))

        assert affected == 2

    def test_query_returns_rows_as_mappings(self, gateway: PersistenceGateway):
        gateway.execute("INSERT INTO users (name, age) VALUES (?, ?)", ("Ana", 30))

        rows = gateway.query("SELECT name, age FROM users WHERE name = ?", ("Ana",))

        assert rows == [{"name": "Ana", "age": 30}]

    def test_query_without_matches_is_empty(self, gateway: PersistenceGateway):
        assert gateway.query("SELECT id FROM users") == []

    def test_values_are_bound_not_interpolated(self, gateway: PersistenceGateway):
        hostile = "x'); DROP TABLE users; --"
        gateway.execute("INSERT INTO users (name, age) VALUES (?, ?)", (hostile, 1))

        rows = gateway.query("SELECT name FROM users")

        assert rows == [{"name": hostile}]

    def test_insert_returns_increasing_identities(self, gateway: PersistenceGateway):
        first = gateway.insert("INSERT INTO users (name, age) VALUES (?, ?)", ("a", 1))
        second = gateway.insert("INSERT INTO users (name, age) VALUES (?, ?)", ("b", 2))

        assert isinstance(first, int)
        assert second > first

    def test_failed_write_is_rolled_back(self, gateway: PersistenceGateway):
        with pytest.raises(PersistenceError):
            gateway.execute("INSERT INTO users (name, age) VALUES (?, ?)", (None, 1))

        assert gateway.query("SELECT id FROM users") == []


class TestErrorTranslation:
    """Database failures surface as the gateway's own error types."""

    def test_statement_error_is_persistence_error(self, bare_engine):
        gateway = PersistenceGateway(bare_engine)

        with pytest.raises(PersistenceError) as exc_info:
            gateway.query("SELECT id, name, age FROM users")

        assert isinstance(exc_info.value.__cause__, DBAPIError)

    def test_unreachable_store_is_connection_error(self, tmp_path):
        gateway = _unreachable_gateway(tmp_path)

        with pytest.raises(StoreConnectionError):
            gateway.connect()

    def test_unreachable_store_fails_reads_with_connection_error(self, tmp_path):
        gateway = _unreachable_gateway(tmp_path)

        with pytest.raises(StoreConnectionError):
            gateway.query("SELECT 1")

    def test_invalidated_connection_is_connection_error(self):
        connection = Mock()
        connection.exec_driver_sql.side_effect = DBAPIError(
            "SELECT 1", (), Exception("server closed the connection"),
            connection_invalidated=True,
        )
        engine = Mock()
        engine.connect.return_value = connection
        engine.dialect.paramstyle = "qmark"

        with pytest.raises(StoreConnectionError):
            PersistenceGateway(engine).query("SELECT 1")

        connection.close.assert_called_once()


class TestParamstyle:
    """Rewriting ``?`` placeholders for each driver paramstyle."""

    @staticmethod
    def _gateway(paramstyle: str) -> PersistenceGateway:
        engine = Mock()
        engine.dialect.paramstyle = paramstyle
        return PersistenceGateway(engine)

    def test_qmark_is_passed_through(self):
        statement, params = self._gateway("qmark")._bind("SELECT ? , ?", [1, 2])
        assert statement == "SELECT ? , ?"
        assert params == (1, 2)

    def test_format_uses_percent_s_and_escapes_literals(self):
        statement, params = self._gateway("format")._bind(
            "SELECT name FROM users WHERE name LIKE '%a' AND age = ?", [3]
        )
        assert statement == "SELECT name FROM users WHERE name LIKE '%%a' AND age = %s"
        assert params == (3,)

    def test_numeric_numbers_placeholders(self):
        statement, _ = self._gateway("numeric")._bind("VALUES (?, ?)", ["a", 1])
        assert statement == "VALUES (:1, :2)"

    def test_named_builds_a_parameter_dict(self):
        statement, params = self._gateway("named")._bind("VALUES (?, ?)", ["a", 1])
        assert statement == "VALUES (:p1, :p2)"
        assert params == {"p1": "a", "p2": 1}

    def test_format_without_params_keeps_literal_percent(self):
        statement, params = self._gateway("pyformat")._bind(
            "SELECT name FROM users WHERE name LIKE '%a'", []
        )
        assert statement == "SELECT name FROM users WHERE name LIKE '%a'"
        assert params == ()

    def test_unknown_paramstyle_is_rejected(self):
        with pytest.raises(PersistenceError):
            self._gateway("exotic")._bind("SELECT ?", [1])


class TestHealthAndLifecycle:
    def test_health_check_true_for_reachable_store(self, gateway: PersistenceGateway):
        assert gateway.health_check() is True

    def test_health_check_false_for_unreachable_store(self, tmp_path):
        assert _unreachable_gateway(tmp_path).health_check() is False

    def test_pool_status_reports_counts(self, gateway: PersistenceGateway):
        status = gateway.get_pool_status()
        assert set(status) == {"size", "checked_in", "checked_out", "overflow"}

    def test_from_config_builds_working_gateway(self, tmp_path):
        db_config = DatabaseConfig(url=f"sqlite:///{tmp_path}/users.db")

        gateway = PersistenceGateway.from_config(db_config, environment="test")
        try:
            assert gateway.engine.dialect.name == "sqlite"
            assert gateway.health_check() is True
        finally:
            gateway.dispose()
