"""FastAPI dependency implementations."""

from fastapi import HTTPException, Request

from src.user_mvc.api.http.app_data import ApplicationDependencies
from src.user_mvc.controller import Action, RequestContext
from src.user_mvc.core.services import PersistenceGateway

# actions that write to the store; their parameters only come from a form body
WRITE_ACTIONS = frozenset({Action.SAVE_USER.value})


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_gateway(request: Request) -> PersistenceGateway:
    """Get the persistence gateway instance."""
    return get_app_dependencies(request).gateway


async def get_request_context(request: Request) -> RequestContext:
    """Build the dispatcher's view of an HTTP request.

    The action name comes from the ``action`` query parameter. Parameters come
    from the form body on POST and from the rest of the query string otherwise.

    Raises:
        HTTPException: 405 when a write action arrives without a POST body.
    """
    action = request.query_params.get("action")
    if request.method == "POST":
        form = await request.form()
        params = {key: value for key, value in form.items() if isinstance(value, str)}
    elif action in WRITE_ACTIONS:
        raise HTTPException(
            status_code=405,
            detail=f"Action {action!r} requires POST",
            headers={"Allow": "POST"},
        )
    else:
        params = {
            key: value for key, value in request.query_params.items() if key != "action"
        }
    return RequestContext(action=action, params=params)
