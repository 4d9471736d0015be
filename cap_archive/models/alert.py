"""Data model for the CAP alert → info → area hierarchy.

Only the CAP fields rendered on the map are modelled.  Each block turns
itself into a flat property mapping keyed by the CAP element name, so a
feature's property bag is the plain union of its three blocks.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields


def _properties(block: object, names: dict[str, str]) -> dict[str, str]:
    """Collect non-empty string fields of *block* under their CAP names."""
    props: dict[str, str] = {}
    for attr, cap_name in names.items():
        value = getattr(block, attr)
        if value:
            props[cap_name] = value
    return props


@dataclass(frozen=True, slots=True)
class AlertEnvelope:
    """Alert-level fields, shared by every feature of one document.

    Attributes:
        identifier: Unique alert identifier assigned by the sender.
        sender: Originator identifier (e.g. ``"w-nws.webmaster@noaa.gov"``).
        sent: Origination timestamp as written in the document.
        status: ``Actual``, ``Exercise``, ``System``, ``Test`` or ``Draft``.
        msg_type: ``Alert``, ``Update``, ``Cancel``, ``Ack`` or ``Error``.
        scope: ``Public``, ``Restricted`` or ``Private``.
    """

    identifier: str = ""
    sender: str = ""
    sent: str = ""
    status: str = ""
    msg_type: str = ""
    scope: str = ""

    def to_properties(self) -> dict[str, str]:
        return _properties(self, ALERT_PROPERTY_NAMES)


@dataclass(frozen=True, slots=True)
class InfoBlock:
    """One ``<info>`` block of an alert.

    Attributes:
        category: CAP event category (e.g. ``"Met"``).
        event: Event type text (e.g. ``"Flood Warning"``).
        urgency: CAP urgency code.
        severity: CAP severity code.
        certainty: CAP certainty code.
        effective: Effective timestamp as written in the document.
        onset: Expected onset timestamp.
        expires: Expiry timestamp.
        headline: Short human-readable headline.
        description: Extended description of the hazard.
        instruction: Recommended action for recipients.
    """

    category: str = ""
    event: str = ""
    urgency: str = ""
    severity: str = ""
    certainty: str = ""
    effective: str = ""
    onset: str = ""
    expires: str = ""
    headline: str = ""
    description: str = ""
    instruction: str = ""

    def to_properties(self) -> dict[str, str]:
        return _properties(self, INFO_PROPERTY_NAMES)


@dataclass(frozen=True, slots=True)
class AreaBlock:
    """One ``<area>`` block of an info block.

    Attributes:
        area_desc: Free-text description of the affected area.
        altitude: Lower altitude bound, as written in the document.
        ceiling: Upper altitude bound, as written in the document.
        polygons: Raw ``"lat,lon lat,lon ..."`` polygon strings, in document order.
    """

    area_desc: str = ""
    altitude: str = ""
    ceiling: str = ""
    polygons: tuple[str, ...] = field(default_factory=tuple)

    def to_properties(self) -> dict[str, str]:
        return _properties(self, AREA_PROPERTY_NAMES)


# Python attribute -> CAP element name.  Shared with the selector table so
# that the property bag and the markup lookup cannot drift apart.
ALERT_PROPERTY_NAMES: dict[str, str] = {
    "identifier": "identifier",
    "sender": "sender",
    "sent": "sent",
    "status": "status",
    "msg_type": "msgType",
    "scope": "scope",
}

INFO_PROPERTY_NAMES: dict[str, str] = {f.name: f.name for f in fields(InfoBlock)}

AREA_PROPERTY_NAMES: dict[str, str] = {
    "area_desc": "areaDesc",
    "altitude": "altitude",
    "ceiling": "ceiling",
}
