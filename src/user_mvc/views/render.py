"""Render collaborators: turn a view name and a payload into a response."""

from collections.abc import Mapping
from typing import Any, Protocol

from starlette.responses import JSONResponse, Response


class Renderer(Protocol):
    """Produces the response for ``view`` from ``payload``."""

    def __call__(self, view: str, payload: Mapping[str, Any]) -> Any: ...


class JsonRenderer:
    """Default renderer: a JSON document naming the view and carrying its data."""

    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code

    def __call__(self, view: str, payload: Mapping[str, Any]) -> Response:
        return JSONResponse(
            status_code=self.status_code,
            content={"view": view, "data": dict(payload)},
        )
