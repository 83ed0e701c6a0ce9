from __future__ import annotations

import asyncio
import os
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Self

from starlette.datastructures import UploadFile

from ..constants import (
    BOOK_FIELD,
    BOOK_NAME_FIELD,
    COVER_FIELD,
    IMAGE_CONTENT_TYPE_PREFIX,
    PDF_CONTENT_TYPE,
    UPLOAD_CHUNK_SIZE,
)
from ..errors import (
    InvalidFileTypeError,
    MissingBookError,
    MissingBookNameError,
    UnexpectedFieldError,
    UploadTooLargeError,
)
from ..logging_config import get_logger
from ..models import BookRecord

if TYPE_CHECKING:
    from starlette.datastructures import FormData

    from ..config import Settings
    from ..metadata_store import MetadataStore

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Form Parsing
# ─────────────────────────────────────────────────────────────────────────────


def _accepts(field: str, content_type: str | None) -> bool:
    content_type = content_type or ""
    if field == BOOK_FIELD:
        return content_type == PDF_CONTENT_TYPE
    if field == COVER_FIELD:
        return content_type.startswith(IMAGE_CONTENT_TYPE_PREFIX)
    return False


@dataclass
class UploadForm:
    book: UploadFile | None = None
    cover: UploadFile | None = None
    book_name: str | None = None

    @classmethod
    def from_form_data(cls, form: FormData) -> Self:
        """
        Sort multipart parts into the book, the cover and the book name.

        Every file part is checked against its field before anything is
        written: ``book`` must be a PDF, ``cover`` an image, and each may
        appear at most once. Unknown text fields are ignored, as are file
        parts without a filename (an untouched ``<input type="file">``).
        """
        parsed = cls()

        for field, value in form.multi_items():
            if isinstance(value, UploadFile):
                if not value.filename:
                    logger.debug("Skipped empty file part", field=field)
                    continue

                if not _accepts(field, value.content_type):
                    logger.info(
                        "Rejected upload part",
                        field=field,
                        content_type=value.content_type,
                        filename=value.filename,
                    )
                    raise InvalidFileTypeError()

                if getattr(parsed, field) is not None:
                    raise UnexpectedFieldError()
                setattr(parsed, field, value)

            elif field == BOOK_NAME_FIELD and parsed.book_name is None:
                parsed.book_name = value

        return parsed

    @property
    def files(self) -> list[UploadFile]:
        return [f for f in (self.book, self.cover) if f is not None]


# ─────────────────────────────────────────────────────────────────────────────
# Staging
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class StagedFile:
    original_name: str
    path: Path
    size: int


def _declared_size(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size

    source = upload.file
    position = source.tell()
    source.seek(0, os.SEEK_END)
    size = source.tell()
    source.seek(position)
    return size


def _copy_to_staging(upload: UploadFile, target: Path, limit: int) -> int:
    """Copy ``upload`` in bounded chunks, aborting once ``limit`` bytes are exceeded."""
    source = upload.file
    source.seek(0)
    written = 0

    with target.open("wb") as buffer:
        for chunk in iter(lambda: source.read(UPLOAD_CHUNK_SIZE), b""):
            written += len(chunk)
            if written > limit:
                raise UploadTooLargeError()
            buffer.write(chunk)

    return written


# ─────────────────────────────────────────────────────────────────────────────
# Upload Service
# ─────────────────────────────────────────────────────────────────────────────


class UploadService:
    def __init__(self, settings: Settings, store: MetadataStore):
        self.settings = settings
        self.store = store
        self._last_timestamp = 0

    async def upload(self, form: UploadForm) -> BookRecord:
        """
        Validate, stage and commit one book upload.

        Files are written to the staging directory first. The record is only
        committed once they sit at their final names; if moving them or
        writing the metadata fails, the moved files are removed again.
        Whatever remains in staging afterwards is discarded, so a failed
        upload never leaves files or a dangling record behind.
        """
        total = sum(_declared_size(f) for f in form.files)
        if total > self.settings.MAX_UPLOAD_BYTES:
            raise UploadTooLargeError()

        if form.book is None:
            raise MissingBookError()

        book_name = (form.book_name or "").strip()
        if not book_name:
            raise MissingBookNameError()

        staged: list[StagedFile] = []
        try:
            budget = self.settings.MAX_UPLOAD_BYTES
            book = await self._stage(form.book, budget)
            staged.append(book)

            cover = None
            if form.cover is not None:
                cover = await self._stage(form.cover, budget - book.size)
                staged.append(cover)

            record = await asyncio.to_thread(self._commit, book, cover, book_name)
        finally:
            for item in staged:
                item.path.unlink(missing_ok=True)

        logger.info(
            "Book uploaded",
            book_id=record.id,
            book_name=record.book_name,
            filename=record.filename,
            size=record.size,
            has_cover=record.cover_image is not None,
        )
        return record

    async def _stage(self, upload: UploadFile, limit: int) -> StagedFile:
        target = self.settings.staging_path / uuid.uuid4().hex
        try:
            size = await asyncio.to_thread(_copy_to_staging, upload, target, limit)
        except BaseException:
            target.unlink(missing_ok=True)
            raise

        return StagedFile(original_name=upload.filename or "", path=target, size=size)

    def _next_timestamp(self) -> int:
        """Current unix millis, bumped so no two records share a timestamp."""
        now = time.time_ns() // 1_000_000
        self._last_timestamp = max(now, self._last_timestamp + 1)
        return self._last_timestamp

    def _commit(
        self, book: StagedFile, cover: StagedFile | None, book_name: str
    ) -> BookRecord:
        with self.store.lock():
            record = BookRecord.create(
                timestamp_ms=self._next_timestamp(),
                original_name=book.original_name,
                book_name=book_name,
                size=book.size,
                cover_original_name=cover.original_name if cover else None,
            )

            moves = [(book.path, self.settings.UPLOADS_PATH / record.filename)]
            if cover is not None and record.cover_filename is not None:
                cover_target = self.settings.covers_path / record.cover_filename
                moves.append((cover.path, cover_target))

            promoted: list[Path] = []
            try:
                for source, target in moves:
                    os.replace(source, target)
                    promoted.append(target)

                document = self.store.read()
                document.prepend(record)
                self.store.write(document)
            except BaseException:
                for target in promoted:
                    target.unlink(missing_ok=True)
                raise

        return record
