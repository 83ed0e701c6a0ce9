from pathlib import Path
from typing import Final

# src/bookdrop/constants.py -> ../.. -> project root
PROJECT_ROOT: Final[Path] = Path(__file__).resolve().parent.parent.parent

METADATA_FILENAME: Final[str] = "books.json"
COVERS_DIRNAME: Final[str] = "covers"
STAGING_DIRNAME: Final[str] = ".staging"

UPLOADS_URL_PREFIX: Final[str] = "/uploads"
COVERS_URL_PREFIX: Final[str] = f"{UPLOADS_URL_PREFIX}/{COVERS_DIRNAME}"

BOOK_FIELD: Final[str] = "book"
COVER_FIELD: Final[str] = "cover"
BOOK_NAME_FIELD: Final[str] = "bookName"

PDF_CONTENT_TYPE: Final[str] = "application/pdf"
IMAGE_CONTENT_TYPE_PREFIX: Final[str] = "image/"

# 50 MiB, PDF and cover combined
DEFAULT_MAX_UPLOAD_BYTES: Final[int] = 50 * 1024 * 1024
UPLOAD_CHUNK_SIZE: Final[int] = 1024 * 1024
# Multipart framing and text fields on top of the files themselves
MULTIPART_OVERHEAD_BYTES: Final[int] = 64 * 1024
