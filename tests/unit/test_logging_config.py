import logging
from collections.abc import Generator

import orjson
import pytest
import structlog

from bookdrop.logging_config import configure_logging, get_logger


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None]:
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_output_with_bound_context(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging("INFO", json_logs=True)

    get_logger("bookdrop.test", book_id="42").info("Book uploaded", size=3)

    line = capsys.readouterr().out.strip().splitlines()[-1]
    data = orjson.loads(line)
    assert data["message"] == "Book uploaded"
    assert data["book_id"] == "42"
    assert data["size"] == 3
    assert data["level"] == "info"
    assert "timestamp" in data


def test_level_filtering(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging("WARNING", json_logs=True)

    get_logger("bookdrop.test").info("Hidden")

    assert capsys.readouterr().out == ""


def test_console_output(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging("INFO", json_logs=False)

    get_logger("bookdrop.test").info("Readable", path="/uploads")

    out = capsys.readouterr().out
    assert "Readable" in out
    assert "path" in out


def test_stdlib_records_share_the_json_format(
    capsys: pytest.CaptureFixture[str],
) -> None:
    configure_logging("INFO", json_logs=True)

    logging.getLogger("uvicorn.error").info("Application startup complete.")

    data = orjson.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert data["message"] == "Application startup complete."
    assert data["level"] == "info"
    assert "timestamp" in data
    assert "_record" not in data


def test_uvicorn_loggers_propagate_to_root() -> None:
    uvicorn_logger = logging.getLogger("uvicorn.access")
    uvicorn_logger.addHandler(logging.NullHandler())
    uvicorn_logger.propagate = False

    configure_logging("INFO")

    assert uvicorn_logger.handlers == []
    assert uvicorn_logger.propagate is True
