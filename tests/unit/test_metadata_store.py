import threading
from pathlib import Path
from unittest.mock import patch

import orjson
import pytest

from bookdrop.metadata_store import MetadataStore
from bookdrop.models import BookRecord, MetadataDocument


def _record(ts: int, name: str = "Book") -> BookRecord:
    return BookRecord.create(
        timestamp_ms=ts, original_name=f"{name}.pdf", book_name=name, size=ts
    )


@pytest.fixture
def store(tmp_path: Path) -> MetadataStore:
    return MetadataStore(tmp_path / "books.json")


class TestRead:
    def test_missing_file_is_empty(self, store: MetadataStore) -> None:
        assert store.read() == MetadataDocument()

    @pytest.mark.parametrize(
        "content",
        [
            b"{not json",
            b"",
            b"[1, 2, 3]",
            b'{"books": "nope"}',
            b'{"books": [{"id": "1"}]}',
        ],
    )
    def test_unparsable_file_is_empty(
        self, store: MetadataStore, content: bytes
    ) -> None:
        store.path.write_bytes(content)

        assert store.read().books == []

    def test_corruption_is_logged(self, store: MetadataStore) -> None:
        store.path.write_bytes(b"{oops")

        with patch("bookdrop.metadata_store.logger") as mock_logger:
            store.read()

        mock_logger.warning.assert_called_once()
        assert "corrupt" in mock_logger.warning.call_args.args[0]

    def test_reads_existing_document(self, store: MetadataStore) -> None:
        store.path.write_text(
            """{
  "books": [
    {
      "id": "1714564800000",
      "filename": "1714564800000_dune.pdf",
      "originalName": "dune.pdf",
      "bookName": "Dune",
      "coverImage": null,
      "size": 2048,
      "uploadDate": "2024-05-01T12:00:00.000Z",
      "path": "/uploads/1714564800000_dune.pdf"
    }
  ]
}"""
        )

        document = store.read()

        assert len(document.books) == 1
        assert document.books[0].book_name == "Dune"
        assert document.books[0].cover_image is None


class TestWrite:
    def test_round_trip(self, store: MetadataStore) -> None:
        document = MetadataDocument(books=[_record(2), _record(1)])

        store.write(document)

        assert store.read() == document

    def test_output_is_indented_camel_case(self, store: MetadataStore) -> None:
        store.write(MetadataDocument(books=[_record(1)]))

        raw = store.path.read_text()
        assert raw.startswith('{\n  "books": [')
        assert '"bookName": "Book"' in raw
        assert orjson.loads(raw)["books"][0]["coverImage"] is None

    def test_leaves_no_temp_file(self, store: MetadataStore) -> None:
        store.write(MetadataDocument())

        assert [p.name for p in store.path.parent.iterdir()] == ["books.json"]

    def test_failed_replace_keeps_previous_document(
        self, store: MetadataStore
    ) -> None:
        original = MetadataDocument(books=[_record(1)])
        store.write(original)

        with (
            patch(
                "bookdrop.metadata_store.os.replace", side_effect=OSError("disk full")
            ),
            pytest.raises(OSError, match="disk full"),
        ):
            store.write(MetadataDocument(books=[_record(2), _record(1)]))

        assert store.read() == original
        assert not store.path.with_name("books.json.tmp").exists()


def test_lock_serializes_read_modify_write(store: MetadataStore) -> None:
    store.write(MetadataDocument())
    workers = 16

    def add(ts: int) -> None:
        with store.lock():
            document = store.read()
            document.prepend(_record(ts))
            store.write(document)

    threads = [threading.Thread(target=add, args=(i + 1,)) for i in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    ids = {b.id for b in store.read().books}
    assert ids == {str(i + 1) for i in range(workers)}


def test_is_healthy(store: MetadataStore) -> None:
    assert store.is_healthy() is False

    store.write(MetadataDocument())
    assert store.is_healthy() is True

    store.path.write_bytes(b"garbage")
    assert store.is_healthy() is False
