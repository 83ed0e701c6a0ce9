from datetime import UTC, datetime
from typing import Self

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .constants import COVERS_URL_PREFIX, UPLOADS_URL_PREFIX
from .utils.filenames import stored_filename


def format_upload_date(timestamp_ms: int) -> str:
    """Render a millisecond timestamp as ISO-8601 UTC, e.g. 2024-05-01T12:00:00.000Z."""
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{timestamp_ms % 1000:03d}Z"


# ─────────────────────────────────────────────────────────────────────────────
# Book Records
# ─────────────────────────────────────────────────────────────────────────────


class BookRecord(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str
    filename: str
    original_name: str
    book_name: str
    cover_image: str | None = None
    size: int = Field(ge=0)
    upload_date: str
    path: str

    def __repr__(self) -> str:
        return f"BookRecord(id={self.id}, book_name={self.book_name!r})"

    @classmethod
    def create(
        cls,
        *,
        timestamp_ms: int,
        original_name: str,
        book_name: str,
        size: int,
        cover_original_name: str | None = None,
    ) -> Self:
        """Build a record whose id, filenames and date all derive from one timestamp."""
        filename = stored_filename(timestamp_ms, original_name)
        cover_image = None
        if cover_original_name is not None:
            cover_filename = stored_filename(timestamp_ms, cover_original_name)
            cover_image = f"{COVERS_URL_PREFIX}/{cover_filename}"

        return cls(
            id=str(timestamp_ms),
            filename=filename,
            original_name=original_name,
            book_name=book_name,
            cover_image=cover_image,
            size=size,
            upload_date=format_upload_date(timestamp_ms),
            path=f"{UPLOADS_URL_PREFIX}/{filename}",
        )

    @property
    def cover_filename(self) -> str | None:
        if self.cover_image is None:
            return None
        return self.cover_image.rsplit("/", 1)[-1]

    def to_public(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)


# ─────────────────────────────────────────────────────────────────────────────
# Metadata Document
# ─────────────────────────────────────────────────────────────────────────────


class MetadataDocument(BaseModel):
    books: list[BookRecord] = Field(default_factory=list)

    def prepend(self, record: BookRecord) -> None:
        self.books.insert(0, record)

    def to_public(self) -> dict[str, object]:
        return {"books": [book.to_public() for book in self.books]}
