"""XML loading and coordinate validation for CAP parsing.

Responsibilities:
- Well-formedness check and hardened lxml parsing
- Coordinate pair parsing and WGS 84 bounds checking
"""

from __future__ import annotations

import logging
import math
import re
from typing import TYPE_CHECKING

from cap_archive.activities.parse_cap._constants import (
    MAX_LATITUDE,
    MAX_LONGITUDE,
    MIN_LATITUDE,
    MIN_LONGITUDE,
)
from cap_archive.core.exceptions import SCOPE_DOCUMENT, ValidationError

if TYPE_CHECKING:
    from lxml.etree import _Element

logger = logging.getLogger("cap_archive.activities.parse_cap")


# ---------------------------------------------------------------------------
# Exceptions (public API, re-exported from __init__)
# ---------------------------------------------------------------------------


class DocumentParseError(ValidationError):
    """Raised when one CAP document is malformed or structurally empty.

    Recovered at the pipeline level: the document is counted as
    processed and contributes no features.
    """

    default_stage = "parse_cap"
    default_code = "CAP_PARSE_FAILED"
    default_scope = SCOPE_DOCUMENT


# ---------------------------------------------------------------------------
# XML loading
# ---------------------------------------------------------------------------

# lxml refuses str input that carries an encoding declaration.
_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")

# Plain decimal literal: optional sign, digits with an optional fraction, optional exponent
_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_xml(content: str | bytes, source_name: str = "") -> _Element:
    """Parse a CAP document into an lxml element tree root.

    Bytes are handed to lxml untouched so the document's encoding
    declaration is honoured.  Entities and network access are disabled.

    Raises:
        DocumentParseError: If the content is empty or not well-formed XML.
    """
    from lxml import etree  # type: ignore[attr-defined]

    label = source_name or "<document>"

    if isinstance(content, str):
        content = _XML_DECLARATION.sub("", content, count=1)

    if not content.strip():
        msg = f"CAP document {label} is empty"
        raise DocumentParseError(msg, code="CAP_DOCUMENT_EMPTY")

    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)
    try:
        return etree.fromstring(content, parser=parser)
    except (etree.XMLSyntaxError, ValueError) as exc:
        msg = f"CAP document {label} is not valid XML: {exc}"
        raise DocumentParseError(msg, code="CAP_MALFORMED_XML") from exc


# ---------------------------------------------------------------------------
# Coordinate validation
# ---------------------------------------------------------------------------


def parse_position(token: str, *, reject_out_of_range: bool = False) -> list[float] | None:
    """Parse one CAP ``"lat,lon"`` token into a ``[lon, lat]`` position.

    Only the first two comma-separated parts are read.  Each must be a
    plain decimal literal (``"28.6"``, ``"-1e-3"``); underscores,
    ``"inf"``, ``"nan"`` and embedded whitespace are not numbers here.
    Returns ``None`` if either part is missing or not a finite number.
    Pairs outside WGS 84 bounds are kept unless *reject_out_of_range*
    is set.
    """
    parts = token.split(",")
    if len(parts) < 2:
        return None

    lat = _parse_number(parts[0])
    lon = _parse_number(parts[1])
    if lat is None or lon is None:
        return None

    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None

    if reject_out_of_range and not (
        MIN_LATITUDE <= lat <= MAX_LATITUDE and MIN_LONGITUDE <= lon <= MAX_LONGITUDE
    ):
        return None

    return [lon, lat]


def _parse_number(text: str) -> float | None:
    if _NUMBER.fullmatch(text) is None:
        return None
    return float(text)
