import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException

# Load environment variables as early as possible
load_dotenv()

from .config import Settings, settings as default_settings
from .container import Container, build_container
from .exceptions import StorageFailure, http_exception_handler, storage_failure_handler
from .middleware import ErrorHandlingMiddleware, LoggingMiddleware
from .routers import verification_router

logger = logging.getLogger(__name__)


async def sweep_pending(container: Container, interval: int) -> None:
    """Drop pending verifications whose window has closed."""
    while True:
        await asyncio.sleep(interval)
        try:
            container.orchestrator.sweep_expired()
        except Exception:
            logger.exception("Pending verification sweep failed")


def create_app(settings: Optional[Settings] = None, container: Optional[Container] = None) -> FastAPI:
    settings = settings or default_settings

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info(f"Starting {settings.APP_NAME}...")
        app.state.container = container or build_container(settings)
        sweeper = asyncio.create_task(sweep_pending(app.state.container, settings.PENDING_SWEEP_INTERVAL_SECONDS))
        yield
        # Shutdown
        logger.info(f"Shutting down {settings.APP_NAME}...")
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url=("/docs" if settings.DOCS_ENABLED else None),
        redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
        openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
    )
    app.state.settings = settings

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StorageFailure, storage_failure_handler)

    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(LoggingMiddleware)

    app.include_router(verification_router.router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("phoneverify.main:app", host=default_settings.HOST, port=default_settings.PORT)
