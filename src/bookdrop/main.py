from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from . import __version__
from .api.errors import register_exception_handlers
from .api.health import router as health_router
from .api.limits import BodySizeLimitMiddleware
from .api.routes import router as api_router
from .config import Settings, get_settings
from .constants import UPLOADS_URL_PREFIX
from .logging_config import configure_logging, get_logger
from .metadata_store import MetadataStore
from .services.upload import UploadService
from .storage import ensure_storage_paths

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    settings: Settings = app.state.settings

    logger.info(
        "Bookdrop starting",
        version=__version__,
        uploads_path=str(settings.UPLOADS_PATH),
        public_path=str(settings.PUBLIC_PATH),
    )

    ensure_storage_paths(settings)

    logger.info(
        "Bookdrop ready",
        host=settings.HOST,
        port=settings.PORT,
        max_upload_bytes=settings.MAX_UPLOAD_BYTES,
    )

    yield

    logger.info("Bookdrop shutdown complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application around ``settings``.

    Static mounts are resolved at build time, so tests pass their own
    settings here rather than overriding a dependency.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Bookdrop",
        description="PDF book upload and listing service",
        version=__version__,
        lifespan=lifespan,
    )

    store = MetadataStore(settings.metadata_path)
    app.state.settings = settings
    app.state.metadata_store = store
    app.state.upload_service = UploadService(settings, store)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        BodySizeLimitMiddleware, max_body_bytes=settings.max_request_bytes
    )
    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(api_router)

    # Directories are created in the lifespan, after the mounts exist
    app.mount(
        UPLOADS_URL_PREFIX,
        StaticFiles(directory=settings.UPLOADS_PATH, check_dir=False),
        name="uploads",
    )
    # Catch-all, must stay last
    if settings.PUBLIC_PATH.is_dir():
        app.mount(
            "/",
            StaticFiles(directory=settings.PUBLIC_PATH, html=True),
            name="public",
        )
    else:
        logger.warning("Public asset directory missing", path=str(settings.PUBLIC_PATH))

    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    configure_logging(level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)

    uvicorn.run(
        create_app(settings),
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    run()
