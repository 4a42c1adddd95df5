"""Action dispatcher: resolve the request's action and run exactly one handler."""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from loguru import logger

from src.user_mvc.controller import handlers
from src.user_mvc.controller.actions import DEFAULT_ACTION, Action, RequestContext
from src.user_mvc.controller.handlers import Handler
from src.user_mvc.core.errors import UnknownActionError
from src.user_mvc.entities.user import UserRepository
from src.user_mvc.views.render import Renderer

# Built once at import; never mutated afterwards.
ACTIONS: Mapping[Action, Handler] = MappingProxyType(
    {
        Action.HOME: handlers.home,
        Action.FORM: handlers.form,
        Action.SAVE_USER: handlers.save_user,
        Action.LIST: handlers.list_users,
    }
)


def resolve_action(action_name: str | None) -> Action:
    """Map a declared action name onto the closed action set.

    An absent or empty name selects the default action.

    Raises:
        UnknownActionError: ``action_name`` is not one of the registered actions.
    """
    if action_name is None or action_name == "":
        return DEFAULT_ACTION
    try:
        return Action(action_name)
    except ValueError:
        raise UnknownActionError(action_name) from None


class Dispatcher:
    """Route one request to one controller handler.

    Args:
        users: Record model handed to every handler.
        render: Render collaborator handed to every handler.
        actions: Dispatch table; must cover every :class:`Action`.
    """

    def __init__(
        self,
        users: UserRepository,
        render: Renderer,
        actions: Mapping[Action, Handler] = ACTIONS,
    ) -> None:
        missing = [action.value for action in Action if action not in actions]
        if missing:
            raise ValueError(f"Dispatch table has no handler for: {', '.join(missing)}")
        if not isinstance(actions, MappingProxyType):
            actions = MappingProxyType(dict(actions))
        self._actions = actions
        self._users = users
        self._render = render

    @property
    def actions(self) -> Mapping[Action, Handler]:
        return self._actions

    def dispatch(self, request: RequestContext) -> Any:
        """Run the handler selected by ``request.action`` and return its response.

        Raises:
            UnknownActionError: The action is not registered; no handler ran.
        """
        try:
            action = resolve_action(request.action)
        except UnknownActionError:
            logger.warning("dispatch.unknown_action", action=request.action)
            raise

        handler = self._actions[action]
        logger.debug("dispatch.resolved", action=action.value)
        return handler(request, self._users, self._render)
