from __future__ import annotations

from typing import TYPE_CHECKING

from .logging_config import get_logger
from .metadata_store import MetadataStore
from .models import MetadataDocument

if TYPE_CHECKING:
    from .config import Settings

logger = get_logger(__name__)


def ensure_storage_paths(settings: Settings) -> None:
    """
    Create the uploads tree and an empty metadata file if they are missing.

    Safe to call on every start. Errors (e.g. permission denied) propagate
    and abort startup.
    """
    for directory in (
        settings.UPLOADS_PATH,
        settings.covers_path,
        settings.staging_path,
    ):
        if not directory.exists():
            directory.mkdir(parents=True, exist_ok=True)
            logger.info("Created storage directory", path=str(directory))

    if not settings.metadata_path.exists():
        MetadataStore(settings.metadata_path).write(MetadataDocument())
        logger.info("Created metadata file", path=str(settings.metadata_path))
