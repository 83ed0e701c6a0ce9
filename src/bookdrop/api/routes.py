import asyncio
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request

from ..config import Settings
from ..errors import BookdropError, ServerError, UploadTooLargeError
from ..logging_config import get_logger
from ..metadata_store import MetadataStore
from ..services.upload import UploadForm, UploadService
from .dependencies import get_app_settings, get_metadata_store, get_upload_service

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["books"])

# book, cover
MAX_FILE_PARTS = 2


def _check_content_length(request: Request, settings: Settings) -> None:
    header = request.headers.get("content-length")
    if header is None:
        return

    try:
        declared = int(header)
    except ValueError:
        return

    if declared > settings.max_request_bytes:
        logger.info("Rejected oversized request", content_length=declared)
        raise UploadTooLargeError()


@router.post("/upload")
async def upload_book(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
    service: Annotated[UploadService, Depends(get_upload_service)],
) -> dict[str, Any]:
    """
    Accept a multipart upload with a ``book`` PDF, an optional ``cover``
    image and a ``bookName`` text field.
    """
    _check_content_length(request, settings)

    async with request.form(max_files=MAX_FILE_PARTS) as form:
        upload_form = UploadForm.from_form_data(form)

        try:
            record = await service.upload(upload_form)
        except BookdropError:
            raise
        except Exception as e:
            logger.exception("Upload error", error=str(e))
            raise ServerError("Failed to upload book") from e

    return {"message": "Book uploaded successfully!", "book": record.to_public()}


@router.get("/books")
async def list_books(
    store: Annotated[MetadataStore, Depends(get_metadata_store)],
) -> dict[str, Any]:
    """Return every uploaded book, newest first."""
    try:
        document = await asyncio.to_thread(store.read)
    except Exception as e:
        logger.exception("Error reading books", error=str(e))
        raise ServerError("Failed to retrieve books") from e

    return document.to_public()
