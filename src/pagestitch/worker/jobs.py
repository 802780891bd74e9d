"""Unattended batch job entry point and shared logging setup.

Runs the full pipeline for a URL list without the interactive CLI, e.g. as
a scheduled container job.

URL list formats:

- plain text: one URL per line, blank lines and ``#`` comments ignored
- JSON: ``["https://a", ...]`` or ``[{"url": "https://a"}, ...]``

Environment variables:
    PAGESTITCH_JOB__URLS:        Path to the URL list (required).
    PAGESTITCH_JOB__OUTPUT_ROOT: Overrides ``batch.output_root``.
    PAGESTITCH_LOG_LEVEL:        Log level (default: INFO).
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# URL list loading
# ---------------------------------------------------------------------------


def load_urls(path: str | Path) -> list[str]:
    """Read an ordered URL list from a text or JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is malformed or holds no URLs.
    """
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"URL list not found: {path}")

    raw = p.read_text(encoding="utf-8")
    if p.suffix.lower() == ".json":
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"URL list is not valid JSON: {e}") from e
        return _validate_entries(data)

    urls = [line.strip() for line in raw.splitlines()]
    urls = [u for u in urls if u and not u.startswith("#")]
    if not urls:
        raise ValueError(f"No URLs found in {path}")
    return urls


def _validate_entries(data: Any) -> list[str]:
    """Flatten a JSON URL list, keeping order and dropping invalid entries."""
    if not isinstance(data, list) or not data:
        raise ValueError("URL list must be a non-empty JSON array")

    urls: list[str] = []
    for i, entry in enumerate(data):
        url = entry.get("url", "") if isinstance(entry, dict) else entry
        url = url.strip() if isinstance(url, str) else ""
        if not url:
            logger.warning("URL list entry %d has no URL — skipping", i)
            continue
        urls.append(url)

    if not urls:
        raise ValueError("URL list contains no valid entries")
    return urls


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> int:
    """Run a batch job configured from the environment.

    Returns:
        Exit code: 0 if every URL succeeded, 1 on partial or total failure.
    """
    configure_logging()

    from pagestitch.exceptions import PageStitchError
    from pagestitch.pipeline import convert_urls

    urls_path = os.environ.get("PAGESTITCH_JOB__URLS", "").strip()
    if not urls_path:
        logger.error("PAGESTITCH_JOB__URLS is required")
        return 1
    output_root = os.environ.get("PAGESTITCH_JOB__OUTPUT_ROOT", "").strip() or None

    try:
        urls = load_urls(urls_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Failed to load URL list: %s", e)
        return 1

    logger.info("PageStitch job starting: %d URL(s) from %s", len(urls), urls_path)
    try:
        run = convert_urls(urls, output_root=Path(output_root) if output_root else None)
    except PageStitchError as e:
        logger.error("Batch job failed: %s", e)
        return 1

    summary = run.summary()
    print(json.dumps(summary, indent=2, default=str))

    if run.failed:
        logger.warning("Batch had %d failures out of %d", run.failed, run.total)
        return 1
    return 0


def configure_logging(level: str | None = None) -> None:
    """Set up root logging.

    Outside ``local`` (``PAGESTITCH_ENV``), emits one JSON object per line::

        {"severity": "INFO", "message": "...", "logger": "...", "time": "..."}

    Locally, uses a human-readable plain-text format.
    """
    log_level = (level or os.environ.get("PAGESTITCH_LOG_LEVEL", "INFO")).upper()
    env = os.environ.get("PAGESTITCH_ENV", "local").strip()

    if env != "local":

        class _JsonFormatter(logging.Formatter):
            """JSON formatter with a ``severity`` field."""

            def format(self, record: logging.LogRecord) -> str:
                entry = {
                    "severity": record.levelname,
                    "message": record.getMessage(),
                    "logger": record.name,
                    "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
                }
                if record.exc_info and record.exc_info[1]:
                    entry["exception"] = self.formatException(record.exc_info)
                return json.dumps(entry, default=str)

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(_JsonFormatter())
        logging.root.handlers.clear()
        logging.root.addHandler(handler)
        logging.root.setLevel(getattr(logging, log_level, logging.INFO))
    else:
        logging.basicConfig(
            level=getattr(logging, log_level, logging.INFO),
            format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
            stream=sys.stderr,
        )

    # Quieten noisy libraries
    logging.getLogger("pypdf").setLevel(logging.ERROR)
    logging.getLogger("PIL").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
