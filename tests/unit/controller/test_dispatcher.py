"""Unit tests for action resolution and dispatch."""

from types import MappingProxyType
from unittest.mock import Mock

import pytest

from src.user_mvc.controller import (
    ACTIONS,
    Action,
    Dispatcher,
    RequestContext,
    resolve_action,
)
from src.user_mvc.core.errors import UnknownActionError
from src.user_mvc.entities.user import UserRepository
from tests.fixtures.core import RecordingRenderer


class TestResolveAction:
    @pytest.mark.parametrize("name", [None, ""])
    def test_absent_action_defaults_to_home(self, name):
        assert resolve_action(name) is Action.HOME

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("home", Action.HOME),
            ("form", Action.FORM),
            ("saveUser", Action.SAVE_USER),
            ("list", Action.LIST),
        ],
    )
    def test_known_actions(self, name, expected):
        assert resolve_action(name) is expected

    @pytest.mark.parametrize("name", ["delete", "HOME", "saveuser", "__class__", " list"])
    def test_unknown_actions_are_rejected(self, name):
        with pytest.raises(UnknownActionError) as exc_info:
            resolve_action(name)

        assert exc_info.value.action == name


class TestDispatchTable:
    def test_table_covers_every_action(self):
        assert set(ACTIONS) == set(Action)

    def test_table_is_immutable(self):
        assert isinstance(ACTIONS, MappingProxyType)
        with pytest.raises(TypeError):
            ACTIONS[Action.HOME] = Mock()  # type: ignore[index]

    def test_dispatcher_shares_the_default_table(self, dispatcher: Dispatcher):
        assert dispatcher.actions is ACTIONS

    def test_incomplete_table_is_rejected(self, users: UserRepository):
        with pytest.raises(ValueError, match="saveUser"):
            Dispatcher(users, RecordingRenderer(), {Action.HOME: Mock()})

    def test_custom_table_is_frozen_copy(self, users: UserRepository):
        table = {action: Mock(return_value=action.value) for action in Action}

        dispatcher = Dispatcher(users, RecordingRenderer(), table)
        table[Action.HOME] = Mock(return_value="swapped")

        assert dispatcher.dispatch(RequestContext(action="home")) == "home"


class TestDispatch:
    def _spy_dispatcher(self, users: UserRepository):
        handlers = {action: Mock(name=action.value) for action in Action}
        renderer = RecordingRenderer()
        return Dispatcher(users, renderer, handlers), handlers, renderer

    def test_exactly_one_handler_runs(self, users: UserRepository):
        dispatcher, handlers, renderer = self._spy_dispatcher(users)
        request = RequestContext(action="list")

        dispatcher.dispatch(request)

        handlers[Action.LIST].assert_called_once_with(request, users, renderer)
        for action, handler in handlers.items():
            if action is not Action.LIST:
                handler.assert_not_called()

    def test_returns_handler_response(self, users: UserRepository):
        dispatcher, handlers, _ = self._spy_dispatcher(users)
        handlers[Action.FORM].return_value = "form response"

        assert dispatcher.dispatch(RequestContext(action="form")) == "form response"

    def test_no_action_matches_home(self, dispatcher: Dispatcher, renderer: RecordingRenderer):
        without_action = dispatcher.dispatch(RequestContext())
        with_home = dispatcher.dispatch(RequestContext(action="home"))

        assert without_action == with_home
        assert renderer.calls[0] == renderer.calls[1]

    def test_unknown_action_runs_no_handler(self, users: UserRepository):
        dispatcher, handlers, renderer = self._spy_dispatcher(users)

        with pytest.raises(UnknownActionError):
            dispatcher.dispatch(RequestContext(action="drop", params={"name": "x"}))

        for handler in handlers.values():
            handler.assert_not_called()
        assert renderer.calls == []

    def test_unknown_action_has_no_side_effect_on_store(
        self, dispatcher: Dispatcher, users: UserRepository
    ):
        with pytest.raises(UnknownActionError):
            dispatcher.dispatch(
                RequestContext(action="saveuser", params={"name": "Ana", "age": "30"})
            )

        assert users.list_all() == []


class TestRequestContext:
    def test_params_are_read_only(self):
        request = RequestContext(action="saveUser", params={"name": "Ana"})

        with pytest.raises(TypeError):
            request.params["name"] = "Bo"  # type: ignore[index]

    def test_params_are_copied(self):
        params = {"name": "Ana"}
        request = RequestContext(params=params)
        params["name"] = "Bo"

        assert request.get("name") == "Ana"
        assert request.get("age", 0) == 0
