"""Request-side values: the closed action set and the per-request context."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class Action(str, Enum):
    """Every action the dispatcher knows about. The value is the wire name."""

    HOME = "home"
    FORM = "form"
    SAVE_USER = "saveUser"
    LIST = "list"

    @property
    def view(self) -> str:
        """Name of the view rendered by this action."""
        return self.value


DEFAULT_ACTION = Action.HOME


@dataclass(frozen=True)
class RequestContext:
    """What the dispatcher needs from one request.

    Attributes:
        action: Declared action name, None when the request did not name one.
        params: Named request parameters, read-only.
    """

    action: str | None = None
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def get(self, name: str, default: Any = None) -> Any:
        return self.params.get(name, default)
