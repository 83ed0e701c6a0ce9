import os
import threading
from pathlib import Path

import orjson
from pydantic import ValidationError

from .logging_config import get_logger
from .models import MetadataDocument

logger = get_logger(__name__)


class MetadataStore:
    """
    Flat-file store for the book list.

    The whole document is read and rewritten on every mutation. Callers that
    read-modify-write must hold ``lock()`` for the whole cycle.
    """

    def __init__(self, path: Path):
        self.path = path
        self._lock = threading.Lock()

    def lock(self) -> threading.Lock:
        return self._lock

    def read(self) -> MetadataDocument:
        """Load the document, treating a missing or unparsable file as empty."""
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            logger.warning("Metadata file missing", path=str(self.path))
            return MetadataDocument()
        except OSError as e:
            logger.warning(
                "Failed to read metadata file", path=str(self.path), error=str(e)
            )
            return MetadataDocument()

        try:
            return MetadataDocument.model_validate(orjson.loads(raw))
        except (orjson.JSONDecodeError, ValidationError) as e:
            logger.warning(
                "Metadata file is corrupt, treating as empty",
                path=str(self.path),
                error=str(e),
            )
            return MetadataDocument()

    def write(self, document: MetadataDocument) -> None:
        """Replace the file atomically: temp sibling, fsync, rename."""
        payload = orjson.dumps(
            document.model_dump(by_alias=True), option=orjson.OPT_INDENT_2
        )
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")

        try:
            with tmp_path.open("wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        logger.debug(
            "Metadata written", path=str(self.path), books=len(document.books)
        )

    def is_healthy(self) -> bool:
        try:
            MetadataDocument.model_validate(orjson.loads(self.path.read_bytes()))
        except (OSError, orjson.JSONDecodeError, ValidationError):
            return False
        return True
