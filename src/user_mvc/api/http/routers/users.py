"""The MVC entry point: every action is served from ``/``."""

from typing import Any

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from src.user_mvc.api.http.app_data import ApplicationDependencies
from src.user_mvc.api.http.deps import get_app_dependencies, get_request_context
from src.user_mvc.controller import RequestContext
from src.user_mvc.runtime.context import use_config

router = APIRouter(tags=["users"])


def _dispatch(app_deps: ApplicationDependencies, context: RequestContext) -> Any:
    with use_config(app_deps.config):
        return app_deps.dispatcher.dispatch(context)


@router.api_route("/", methods=["GET", "POST"], response_model=None)
async def dispatch_action(
    context: RequestContext = Depends(get_request_context),
    app_deps: ApplicationDependencies = Depends(get_app_dependencies),
) -> Any:
    """Dispatch the request's ``action`` to its controller handler."""
    # the store calls block, keep them off the event loop
    return await run_in_threadpool(_dispatch, app_deps, context)
