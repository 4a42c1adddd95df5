"""Controller layer: action resolution and the handler set."""

from .actions import Action, RequestContext
from .dispatcher import ACTIONS, Dispatcher, resolve_action

__all__ = ["ACTIONS", "Action", "Dispatcher", "RequestContext", "resolve_action"]
