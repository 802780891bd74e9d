"""PageStitch — capture web pages as full-page snapshots and stitch them into one PDF."""

from __future__ import annotations

try:
    from importlib.metadata import version

    __version__ = version("pagestitch")
except Exception:
    __version__ = "0.0.0"
