"""FastAPI application factory for the chat relay."""

import time

from fastapi import FastAPI, Request

from .. import __version__
from ..catalog import ModelCatalog, default_catalog
from ..config import Settings
from ..dispatch import Dispatcher, LocalDispatcher
from ..log import get_logger
from .routes import router

logger = get_logger("modelchat.http")


def create_app(
    settings: Settings | None = None,
    dispatcher: Dispatcher | None = None,
    catalog: ModelCatalog | None = None,
) -> FastAPI:
    """Build the relay application.

    Args:
        settings: Application settings (read from the environment if omitted)
        dispatcher: Dispatcher serving chat requests (in-process by default)
        catalog: Model catalog reported by /api/providers

    Returns:
        Configured FastAPI app
    """
    settings = settings or Settings.from_env()
    app = FastAPI(title="modelchat", version=__version__)
    app.state.settings = settings
    app.state.catalog = catalog or default_catalog()
    app.state.dispatcher = dispatcher or LocalDispatcher(settings)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.monotonic()
        response = await call_next(request)
        logger.info(
            "HTTP request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration=round(time.monotonic() - started, 4),
        )
        return response

    app.include_router(router)
    return app
