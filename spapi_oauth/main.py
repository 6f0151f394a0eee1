"""FastAPI application entry point."""

import logging
import sys
import httpx
from fastapi import FastAPI, Request
import structlog

from spapi_oauth import __version__
from spapi_oauth.api.presenter import presenter
from spapi_oauth.api.routes import router
from spapi_oauth.auth.lwa_client import LWAError
from spapi_oauth.config import settings

logger = structlog.get_logger(__name__)


def configure_logging(level: str = "INFO", debug: bool = False) -> None:
    """Configure structlog and stdlib logging."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    renderer = structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    configure_logging(settings.log_level, settings.debug)

    application = FastAPI(
        title=settings.app_name,
        version=__version__,
        debug=settings.debug,
    )
    application.include_router(router)

    @application.exception_handler(LWAError)
    @application.exception_handler(httpx.HTTPError)
    async def token_exchange_error_handler(request: Request, exc: Exception):
        logger.error("authorization_failed", error_type=type(exc).__name__, error=str(exc))
        return presenter.failure_page(request)

    logger.info("app_created", app_env=settings.app_env, debug=settings.debug)
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("spapi_oauth.main:app", host=settings.host, port=settings.port)
