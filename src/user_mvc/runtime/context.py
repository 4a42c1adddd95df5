"""Process-wide application context.

The active :class:`ConfigData` lives in a ContextVar. Code reads it through
:func:`get_config`; an application built with its own configuration switches
to it for the duration of each request with :func:`use_config`.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, replace
from pathlib import Path

from src.user_mvc.runtime.config.config_data import ConfigData
from src.user_mvc.runtime.config.config_template import load_config
from src.user_mvc.runtime.settings import EnvironmentVariables


@dataclass
class AppContext:
    config: ConfigData


_app_context: ContextVar[AppContext] = ContextVar(
    "app_context",
    default=AppContext(config=load_config(Path(EnvironmentVariables().config_path))),
)


def get_context() -> AppContext:
    return _app_context.get()


def set_context(context: AppContext) -> Token[AppContext]:
    return _app_context.set(context)


def get_config() -> ConfigData:
    """Configuration of the current context."""
    return get_context().config


def set_config(config: ConfigData) -> Token[AppContext]:
    """Make ``config`` current; pass the returned token to reset it."""
    return set_context(replace(get_context(), config=config))


def _merge(base: dict, override: dict) -> dict:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _merge_configs(base_config: ConfigData, override_config: ConfigData) -> ConfigData:
    # computed fields are derived, feeding them back would fail validation
    base = base_config.model_dump(exclude={"database": {"password", "connection_string"}})
    override = override_config.model_dump(
        exclude_unset=True, exclude={"database": {"password", "connection_string"}}
    )
    return ConfigData.model_validate(_merge(base, override))


@contextmanager
def use_config(config: ConfigData) -> Iterator[ConfigData]:
    """Replace the whole configuration until the block exits."""
    token = set_config(config)
    try:
        yield config
    finally:
        _app_context.reset(token)


@contextmanager
def with_context(config_override: ConfigData | None = None) -> Iterator[None]:
    """Temporarily override the explicitly set fields of ``config_override``.

    Fields the override leaves unset keep their current values:

        with with_context(ConfigData(app=AppConfig(home_name="Ana"))):
            assert get_config().app.home_name == "Ana"
    """
    if config_override is None:
        yield
        return

    if not isinstance(config_override, ConfigData):
        raise ValueError(
            f"config_override must be ConfigData, or None, got {type(config_override)}"
        )

    with use_config(_merge_configs(get_config(), config_override)):
        yield
