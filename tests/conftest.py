"""Shared pytest fixtures for the CAP archive test suite."""

from __future__ import annotations

import io
import struct
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Path fixtures
# ---------------------------------------------------------------------------

TESTS_DIR = Path(__file__).parent
DATA_DIR = TESTS_DIR / "data"

CAP12_NS = "urn:oasis:names:tc:emergency:cap:1.2"


@pytest.fixture()
def data_dir() -> Path:
    """Return the path to the test data directory."""
    return DATA_DIR


# ---------------------------------------------------------------------------
# Sample CAP document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def single_polygon_cap(data_dir: Path) -> bytes:
    """CAP 1.2 document with ``cap:`` prefixes and one polygon (New Delhi)."""
    return (data_dir / "01_cap12_prefixed_single_polygon.xml").read_bytes()


@pytest.fixture()
def multi_info_cap(data_dir: Path) -> bytes:
    """CAP 1.1 default-namespace document: two infos, a MultiPolygon area,
    a description-only area and a Polygon area."""
    return (data_dir / "02_default_namespace_multi_info.xml").read_bytes()


@pytest.fixture()
def bare_cap(data_dir: Path) -> bytes:
    """Un-namespaced CAP document with a multi-line, unclosed polygon."""
    return (data_dir / "03_bare_no_namespace.xml").read_bytes()


@pytest.fixture()
def malformed_cap(data_dir: Path) -> bytes:
    """Document that is not well-formed XML."""
    return (data_dir / "04_malformed_not_xml.xml").read_bytes()


@pytest.fixture()
def no_alert_cap(data_dir: Path) -> bytes:
    """Well-formed XML with no ``<alert>`` element."""
    return (data_dir / "05_no_alert_element.xml").read_bytes()


@pytest.fixture()
def invalid_pairs_cap(data_dir: Path) -> bytes:
    """CAP document mixing valid and unparseable coordinate pairs."""
    return (data_dir / "06_invalid_coordinate_pairs.xml").read_bytes()


@pytest.fixture()
def wrapped_cap(data_dir: Path) -> bytes:
    """CAP alert nested inside an Atom feed entry."""
    return (data_dir / "07_wrapped_alert.xml").read_bytes()


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def _cap_document(
    *polygons: str,
    identifier: str = "TEST-1",
    area_desc: str = "Test area",
    event: str = "Test Event",
) -> str:
    polygon_xml = "".join(f"<cap:polygon>{p}</cap:polygon>" for p in polygons)
    area_desc_xml = f"<cap:areaDesc>{area_desc}</cap:areaDesc>" if area_desc else ""
    return (
        f'<cap:alert xmlns:cap="{CAP12_NS}">'
        f"<cap:identifier>{identifier}</cap:identifier>"
        "<cap:status>Actual</cap:status>"
        f"<cap:info><cap:event>{event}</cap:event>"
        f"<cap:area>{area_desc_xml}{polygon_xml}</cap:area>"
        "</cap:info></cap:alert>"
    )


def _zip_archive(
    entries: list[tuple[str, str | bytes]],
    *,
    directories: tuple[str, ...] = (),
    compression: int = zipfile.ZIP_DEFLATED,
) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=compression) as zf:
        for directory in directories:
            zf.writestr(zipfile.ZipInfo(directory.rstrip("/") + "/"), b"")
        for name, content in entries:
            zf.writestr(name, content)
    return buffer.getvalue()


def _corrupt_entry(archive: bytes, name: str) -> bytes:
    """Invert a run of bytes in the middle of *name*'s stored payload.

    The central directory is left intact, so the archive still opens and
    only reading that entry fails.
    """
    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        info = zf.getinfo(name)
    offset = info.header_offset
    name_len, extra_len = struct.unpack_from("<HH", archive, offset + 26)
    start = offset + 30 + name_len + extra_len
    middle = start + info.compress_size // 2

    data = bytearray(archive)
    for i in range(middle, min(middle + 16, start + info.compress_size)):
        data[i] ^= 0xFF
    return bytes(data)


@pytest.fixture()
def cap_document() -> Callable[..., str]:
    """Return a builder for single-area CAP 1.2 documents.

    ``cap_document("10,20 11,21 10,21", identifier="X")`` puts each
    positional polygon string into the same ``<area>``.
    """
    return _cap_document


@pytest.fixture()
def make_archive() -> Callable[..., bytes]:
    """Return a builder for in-memory ZIP archives.

    ``make_archive([("a.xml", "<alert/>")], directories=("docs/",))``
    """
    return _zip_archive


@pytest.fixture()
def corrupt_entry() -> Callable[[bytes, str], bytes]:
    """Return a helper that damages one entry's compressed payload in place."""
    return _corrupt_entry
