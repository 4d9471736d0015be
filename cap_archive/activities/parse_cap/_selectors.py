"""Namespace-tolerant CAP element lookup.

CAP documents in the wild mix a namespaced form (``<cap:info>`` or a
default CAP namespace) with bare, un-namespaced elements.  Every logical
field maps to an ordered list of candidate selectors; lookups try them
in order and the first match wins.  A missing element is not an error.

Selector syntax:
- ``"cap:<name>"``: element ``<name>`` in any of the CAP namespaces.
- ``"<name>"``: element ``<name>`` in no namespace or any other one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from cap_archive.activities.parse_cap._constants import CAP_NAMESPACES, CAP_PREFIX

if TYPE_CHECKING:
    from collections.abc import Iterator

    from lxml.etree import _Element


def _candidates(name: str) -> tuple[str, ...]:
    return (f"{CAP_PREFIX}:{name}", name)


FIELD_SELECTORS: dict[str, tuple[str, ...]] = {
    name: _candidates(name)
    for name in (
        # structure
        "alert",
        "info",
        "area",
        "polygon",
        # alert envelope
        "identifier",
        "sender",
        "sent",
        "status",
        "msgType",
        "scope",
        # info block
        "category",
        "event",
        "urgency",
        "severity",
        "certainty",
        "effective",
        "onset",
        "expires",
        "headline",
        "description",
        "instruction",
        # area block
        "areaDesc",
        "altitude",
        "ceiling",
    )
}


@dataclass(frozen=True, slots=True)
class Selector:
    """A compiled selector: a local name plus the namespaces it accepts.

    ``namespaces`` of ``None`` accepts any namespace, including none.
    """

    local_name: str
    namespaces: frozenset[str] | None = None

    @classmethod
    def compile(cls, selector: str) -> Selector:
        prefix, _, local_name = selector.rpartition(":")
        if not prefix:
            return cls(local_name)
        if prefix == CAP_PREFIX:
            return cls(local_name, frozenset(CAP_NAMESPACES))
        msg = f"Unknown selector prefix '{prefix}' in '{selector}'"
        raise ValueError(msg)

    def matches(self, element: _Element) -> bool:
        from lxml import etree  # type: ignore[attr-defined]

        # Comments and processing instructions have non-string tags.
        if not isinstance(element.tag, str):
            return False
        qname = etree.QName(element)
        if qname.localname != self.local_name:
            return False
        return self.namespaces is None or qname.namespace in self.namespaces


_COMPILED: dict[str, tuple[Selector, ...]] = {
    field: tuple(Selector.compile(s) for s in selectors)
    for field, selectors in FIELD_SELECTORS.items()
}


def selectors_for(field: str) -> tuple[Selector, ...]:
    """Return the compiled selectors for a logical field.

    Raises:
        KeyError: If *field* is not in ``FIELD_SELECTORS``.
    """
    return _COMPILED[field]


def _scope(parent: _Element, *, deep: bool) -> Iterator[_Element]:
    return parent.iterdescendants() if deep else parent.iterchildren()


def find_first(parent: _Element, field: str, *, deep: bool = False) -> _Element | None:
    """Return the first element matching *field*, trying selectors in order.

    Args:
        parent: Element to search under.
        field: Logical field name from ``FIELD_SELECTORS``.
        deep: Search all descendants instead of direct children only.
    """
    for selector in selectors_for(field):
        for element in _scope(parent, deep=deep):
            if selector.matches(element):
                return element
    return None


def find_all(parent: _Element, field: str, *, deep: bool = False) -> list[_Element]:
    """Return every element matching any selector of *field*, in document order."""
    selectors = selectors_for(field)
    return [el for el in _scope(parent, deep=deep) if any(s.matches(el) for s in selectors)]


def find_text(parent: _Element, field: str) -> str:
    """Return the stripped text content of a direct child field, or ``""``."""
    element = find_first(parent, field)
    if element is None:
        return ""
    return "".join(element.itertext()).strip()


def locate_alert(root: _Element) -> _Element | None:
    """Return the alert element: the root itself, or the first descendant alert."""
    if any(s.matches(root) for s in selectors_for("alert")):
        return root
    return find_first(root, "alert", deep=True)
