import pytest

MINIMAL_PDF = b"""%PDF-1.4
1 0 obj << /Type /Catalog /Pages 2 0 R >> endobj
2 0 obj << /Type /Pages /Kids [3 0 R] /Count 1 >> endobj
3 0 obj << /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] >> endobj
trailer << /Root 1 0 R >>
%%EOF
"""

# 1x1 transparent PNG
MINIMAL_PNG = bytes.fromhex(
    "89504e470d0a1a0a0000000d49484452000000010000000108060000001f15c489"
    "0000000d49444154789c63000100000500010d0a2db40000000049454e44ae426082"
)


@pytest.fixture
def sample_pdf() -> bytes:
    return MINIMAL_PDF


@pytest.fixture
def sample_png() -> bytes:
    return MINIMAL_PNG


@pytest.fixture
def large_pdf() -> bytes:
    return MINIMAL_PDF + b"%" + b"0" * (256 * 1024)
