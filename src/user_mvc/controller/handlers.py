"""Controller: one handler per action.

A handler reads its named parameters from the request, calls at most one
record model operation and forwards a payload to the renderer. Handlers never
build markup and never issue SQL; model errors propagate unchanged.
"""

import re
from collections.abc import Callable
from typing import Any

from loguru import logger

from src.user_mvc.controller.actions import Action, RequestContext
from src.user_mvc.core.errors import InvalidParameterError
from src.user_mvc.entities.user import MAX_AGE, User, UserRepository
from src.user_mvc.runtime.context import get_config
from src.user_mvc.views.render import Renderer

Handler = Callable[[RequestContext, UserRepository, Renderer], Any]

_INTEGER = re.compile(r"[+-]?[0-9]+")


def parse_age(raw: Any) -> int:
    """Read the ``age`` parameter.

    Missing or blank means 0. Anything else must be a base-10 integer between
    0 and ``MAX_AGE``.
    """
    if raw is None:
        return 0
    if isinstance(raw, bool):
        raise InvalidParameterError("age", raw, "must be a whole number")
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip()
        if not text:
            return 0
        if not _INTEGER.fullmatch(text):
            raise InvalidParameterError("age", raw, "must be a whole number")
        if len(text.lstrip("+-").lstrip("0")) > len(str(MAX_AGE)):
            # int() refuses very long digit strings
            if text.startswith("-"):
                raise InvalidParameterError("age", raw, "must not be negative")
            raise InvalidParameterError("age", raw, f"must not exceed {MAX_AGE}")
        value = int(text)
    if value < 0:
        raise InvalidParameterError("age", raw, "must not be negative")
    if value > MAX_AGE:
        raise InvalidParameterError("age", raw, f"must not exceed {MAX_AGE}")
    return value


def home(request: RequestContext, users: UserRepository, render: Renderer) -> Any:
    return render(Action.HOME.view, {"name": get_config().app.home_name})


def form(request: RequestContext, users: UserRepository, render: Renderer) -> Any:
    return render(Action.FORM.view, {})


def save_user(request: RequestContext, users: UserRepository, render: Renderer) -> Any:
    """Persist a user from the ``name`` and ``age`` parameters."""
    user = User.transient(
        name=str(request.get("name", "")),
        age=parse_age(request.get("age")),
    )
    saved = users.save(user)
    logger.debug("Saved user {}", saved.id)
    return render(Action.SAVE_USER.view, {"user": saved.model_dump()})


def list_users(request: RequestContext, users: UserRepository, render: Renderer) -> Any:
    records = users.list_all()
    return render(Action.LIST.view, {"users": [user.model_dump() for user in records]})
