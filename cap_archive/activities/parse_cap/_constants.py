"""Shared constants for CAP document parsing."""

from __future__ import annotations

# CAP namespaces accepted for the prefixed selector form, newest first
CAP_NAMESPACES = (
    "urn:oasis:names:tc:emergency:cap:1.2",
    "urn:oasis:names:tc:emergency:cap:1.1",
    "urn:oasis:names:tc:emergency:cap:1.0",
)

# Prefix used in the selector table for the namespaced form
CAP_PREFIX = "cap"

# WGS 84 coordinate bounds
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0
MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
