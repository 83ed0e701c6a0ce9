import re

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9.-]")

# NAME_MAX on common filesystems; sanitized names are ASCII, so chars == bytes
MAX_FILENAME_LENGTH = 255
_MAX_KEPT_SUFFIX = 16


def sanitize_filename(name: str) -> str:
    """Replace every character outside [A-Za-z0-9.-] with an underscore."""
    return _UNSAFE_CHARS.sub("_", name)


def _truncate(name: str, limit: int) -> str:
    if len(name) <= limit:
        return name

    stem, dot, suffix = name.rpartition(".")
    if dot and stem and len(suffix) < _MAX_KEPT_SUFFIX:
        return f"{stem[: limit - len(suffix) - 1]}.{suffix}"
    return name[:limit]


def stored_filename(timestamp_ms: int, original_name: str) -> str:
    """``<timestamp>_<sanitized name>``, shortened to fit MAX_FILENAME_LENGTH."""
    prefix = f"{timestamp_ms}_"
    name = sanitize_filename(original_name)
    return prefix + _truncate(name, MAX_FILENAME_LENGTH - len(prefix))
