import os
from typing import Annotated

from fastapi import APIRouter, Depends

from ..config import Settings
from ..logging_config import get_logger
from ..metadata_store import MetadataStore
from .dependencies import get_app_settings, get_metadata_store

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ready")
async def readiness_check(
    settings: Annotated[Settings, Depends(get_app_settings)],
    store: Annotated[MetadataStore, Depends(get_metadata_store)],
) -> dict[str, str | bool]:
    storage_ok = settings.UPLOADS_PATH.is_dir() and os.access(
        settings.UPLOADS_PATH, os.W_OK
    )
    if not storage_ok:
        logger.warning(
            "Uploads directory not writable", path=str(settings.UPLOADS_PATH)
        )

    metadata_ok = store.is_healthy()
    if not metadata_ok:
        logger.warning("Metadata file unreadable", path=str(store.path))

    return {
        "status": "ready" if storage_ok and metadata_ok else "degraded",
        "storage": storage_ok,
        "metadata": metadata_ok,
    }
