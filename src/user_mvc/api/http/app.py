"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from loguru import logger
from starlette.responses import JSONResponse

from src.user_mvc.api.http.app_data import ApplicationDependencies
from src.user_mvc.api.http.routers.health import router as health_router
from src.user_mvc.api.http.routers.users import router as users_router
from src.user_mvc.api.utils.app_startup import configure_logging
from src.user_mvc.controller import Dispatcher
from src.user_mvc.core.errors import (
    InvalidParameterError,
    PersistenceError,
    RecordStateError,
    StoreConnectionError,
    UnknownActionError,
)
from src.user_mvc.core.services import DbManageService, PersistenceGateway
from src.user_mvc.entities.user import UserRepository
from src.user_mvc.runtime.config.config_data import ConfigData
from src.user_mvc.runtime.context import get_config
from src.user_mvc.views.render import JsonRenderer, Renderer


def _error_response(request: Request, status_code: int, detail: str) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "-")
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "request_id": request_id},
        headers={"X-Request-ID": request_id},
    )


async def unknown_action_handler(request: Request, exc: UnknownActionError) -> JSONResponse:
    logger.bind(status_code=404, action=exc.action).warning("request.unknown_action")
    return _error_response(request, 404, str(exc))


async def invalid_parameter_handler(
    request: Request, exc: InvalidParameterError
) -> JSONResponse:
    logger.bind(status_code=400, parameter=exc.name).warning("request.invalid_parameter")
    return _error_response(request, 400, str(exc))


async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.bind(status_code=500, error_type=type(exc).__name__).opt(
        exception=exc
    ).error("request.persistence_error")
    return _error_response(request, 500, "Persistence failure")


async def record_state_error_handler(request: Request, exc: RecordStateError) -> JSONResponse:
    logger.bind(status_code=500, error_type=type(exc).__name__).opt(
        exception=exc
    ).error("request.record_state_error")
    return _error_response(request, 500, "Internal Server Error")


async def store_connection_error_handler(
    request: Request, exc: StoreConnectionError
) -> JSONResponse:
    logger.bind(status_code=503, error_type=type(exc).__name__).opt(
        exception=exc
    ).error("request.store_unavailable")
    # a broken connection is the only failure that tears down shared state
    app_deps: ApplicationDependencies | None = getattr(
        request.app.state, "app_dependencies", None
    )
    if app_deps is not None:
        app_deps.gateway.dispose()
    return _error_response(request, 503, "Store unavailable")


def build_dependencies(
    config: ConfigData, gateway: PersistenceGateway, renderer: Renderer
) -> ApplicationDependencies:
    users = UserRepository(gateway)
    return ApplicationDependencies(
        config=config,
        gateway=gateway,
        users=users,
        dispatcher=Dispatcher(users, renderer),
    )


def create_app(
    gateway: PersistenceGateway | None = None,
    renderer: Renderer | None = None,
    config: ConfigData | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        gateway: Gateway to use instead of one built from ``config.database``.
        renderer: Render collaborator, JSON by default.
        config: Configuration for startup, the current context's by default.
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await startup(app, config, gateway, renderer or JsonRenderer())
        try:
            yield
        finally:
            await shutdown(app)

    app = FastAPI(
        lifespan=lifespan,
        docs_url=None if config.app.environment == "production" else "/docs",
        redoc_url=None if config.app.environment == "production" else "/redoc",
    )

    app.add_exception_handler(UnknownActionError, unknown_action_handler)
    app.add_exception_handler(InvalidParameterError, invalid_parameter_handler)
    app.add_exception_handler(StoreConnectionError, store_connection_error_handler)
    app.add_exception_handler(PersistenceError, persistence_error_handler)
    app.add_exception_handler(RecordStateError, record_state_error_handler)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        base_ctx = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "action": request.query_params.get("action"),
            "client_ip": request.client.host if request.client else "unknown",
        }

        start = time.perf_counter()

        # Everything that logs within this block inherits base_ctx
        with logger.contextualize(**base_ctx):
            logger.info("request.start")
            try:
                response = await call_next(request)
            except Exception as exc:
                duration_ms = (time.perf_counter() - start) * 1000
                logger.bind(
                    status_code=500,
                    duration_ms=round(duration_ms, 1),
                    error_type=type(exc).__name__,
                ).exception("request.error")
                return _error_response(request, 500, "Internal Server Error")

            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=response.status_code,
                duration_ms=round(duration_ms, 1),
            ).info("request.end")
            response.headers.setdefault("X-Request-ID", request_id)
            return response

    app.include_router(users_router)
    app.include_router(health_router)

    return app


async def startup(
    app: FastAPI,
    config: ConfigData,
    gateway: PersistenceGateway | None,
    renderer: Renderer,
) -> None:
    logger.info("Starting up application in {} environment", config.app.environment)

    if gateway is None:
        gateway = PersistenceGateway.from_config(
            config.database, environment=config.app.environment
        )

    if config.database.create_schema:
        DbManageService(gateway.engine).create_all()

    app.state.app_dependencies = build_dependencies(config, gateway, renderer)


async def shutdown(app: FastAPI) -> None:
    logger.info("Shutting down application")
    app_dependencies: ApplicationDependencies | None = getattr(
        app.state, "app_dependencies", None
    )
    if app_dependencies is not None:
        app_dependencies.gateway.dispose()


configure_logging()
app = create_app()

__all__ = ["app", "create_app", "startup", "shutdown"]


if __name__ == "__main__":
    import uvicorn

    config = get_config()
    uvicorn.run(
        app,
        host=config.app.host,
        port=config.app.port,
        access_log=False,  # access logging is done by the middleware
    )
