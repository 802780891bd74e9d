"""Batch orchestration: URLs in, per-page PDFs and one merged PDF out.

URLs are processed strictly one after another on a single shared browser.
Each URL runs prepare -> readiness -> capture -> convert inside its own
browser context. A URL that fails at any step is marked failed and left out
of the merge; it never stops the batch. The browser is always closed when
the run ends, whatever happened.

Output layout::

    <output_root>/<host>_<timestamp>/
        screenshots/page-1.png ...
        pdfs/page-1.pdf ...
        merged_<timestamp>.pdf
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from pagestitch.browser.capture import capture_page
from pagestitch.browser.overlays import build_context_args, prepare_page
from pagestitch.browser.session import BrowserSession
from pagestitch.documents.convert import convert_to_pdf
from pagestitch.documents.merge import merge_documents
from pagestitch.exceptions import EmptyBatchError, NoDocumentsError
from pagestitch.models.run import BatchRun, CaptureJob, JobStatus
from pagestitch.settings.config import Settings

logger = logging.getLogger(__name__)

_UNSAFE_HOST_CHARS = re.compile(r"[^A-Za-z0-9-]+")


# ---------------------------------------------------------------------------
# Run naming
# ---------------------------------------------------------------------------


def sanitize_host(url: str) -> str:
    """Directory-safe token for the host of *url*.

    ``https://www.example.co.uk/x`` -> ``example_co_uk``.
    """
    try:
        host = urlparse(url.strip()).hostname or ""
    except ValueError:
        host = ""
    if host.startswith("www."):
        host = host[len("www."):]
    token = _UNSAFE_HOST_CHARS.sub("_", host).strip("_")
    return token or "unknown"


def run_timestamp(now: datetime | None = None) -> str:
    """Sortable UTC timestamp, e.g. ``2024-05-01_12-30-05``."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%d_%H-%M-%S")


def create_run(
    urls: Sequence[str],
    settings: Settings,
    *,
    output_root: Path | None = None,
    now: datetime | None = None,
) -> BatchRun:
    """Build the :class:`BatchRun` for *urls* (no filesystem changes)."""
    if not urls:
        raise EmptyBatchError("No URLs to process")

    timestamp = run_timestamp(now)
    run_id = f"{sanitize_host(urls[0])}_{timestamp}"
    root = Path(output_root or settings.batch.output_root)
    output_dir = root / run_id
    return BatchRun(
        run_id=run_id,
        timestamp=timestamp,
        output_dir=output_dir,
        screenshots_dir=output_dir / settings.batch.screenshots_dirname,
        documents_dir=output_dir / settings.batch.documents_dirname,
        urls=list(urls),
    )


def prepare_output_dirs(run: BatchRun) -> None:
    """Create the run directories. A run directory is never reused."""
    run.output_dir.mkdir(parents=True, exist_ok=False)
    run.screenshots_dir.mkdir()
    run.documents_dir.mkdir()
    logger.info("Created output directories in: %s", run.output_dir)


# ---------------------------------------------------------------------------
# Per-URL job
# ---------------------------------------------------------------------------


def process_job(session: BrowserSession, job: CaptureJob, settings: Settings) -> CaptureJob:
    """Run one capture job to a final status. Never raises for per-job errors."""
    start = time.monotonic()
    try:
        with session.page(**build_context_args(settings.browser)) as page:
            suppressor = prepare_page(page, settings.browser, settings.overlay)
            if capture_page(page, job.url, job.snapshot_path, settings, suppressor=suppressor):
                job.status = JobStatus.CAPTURED
                logger.info("✓ Screenshot captured for %s", job.url)
            else:
                job.error = "capture failed"
    except Exception as e:
        job.error = str(e) or type(e).__name__
        logger.exception("Failed to process %s", job.url)

    # Conversion only needs the PNG, so it runs after the context is closed.
    if job.status is JobStatus.CAPTURED:
        if convert_to_pdf(job.snapshot_path, job.document_path):
            job.status = JobStatus.CONVERTED
            logger.info("✓ PDF generated for %s", job.url)
        else:
            job.error = "conversion failed"

    if job.status is not JobStatus.CONVERTED:
        job.status = JobStatus.FAILED
    job.duration_seconds = time.monotonic() - start
    return job


def generate_documents(
    urls: Sequence[str],
    *,
    settings: Settings | None = None,
    output_root: Path | None = None,
    session_factory: Callable[..., Any] = BrowserSession,
    sleep: Callable[[float], None] = time.sleep,
    now: datetime | None = None,
) -> BatchRun:
    """Capture and convert every URL in order.

    Args:
        urls: Ordered, non-empty URL list.
        settings: Run settings; defaults to :func:`get_settings`.
        output_root: Overrides ``settings.batch.output_root``.
        session_factory: Builds the browser session from ``settings.browser``.
        sleep: Inter-job delay sleep.
        now: Fixed run time (for naming).

    Returns:
        The finalized :class:`BatchRun` (``merged_path`` unset).

    Raises:
        EmptyBatchError: If *urls* is empty.
        BrowserLaunchError: If the browser cannot be started.
    """
    if settings is None:
        from pagestitch.settings import get_settings

        settings = get_settings()

    run = create_run(urls, settings, output_root=output_root, now=now)
    prepare_output_dirs(run)
    total = len(run.urls)
    delay = settings.batch.inter_job_delay_seconds

    session = session_factory(settings.browser)
    try:
        session.acquire()
        for ordinal, url in enumerate(run.urls):
            logger.info("Processing (%d/%d): %s", ordinal + 1, total, url)
            job = CaptureJob(
                url=url,
                ordinal=ordinal,
                snapshot_path=run.screenshots_dir / f"page-{ordinal + 1}.png",
                document_path=run.documents_dir / f"page-{ordinal + 1}.pdf",
            )
            run.record(process_job(session, job, settings))
            if job.status is JobStatus.FAILED:
                logger.error("❌ Failed to process %s: %s", url, job.error)
            if delay:
                sleep(delay)
    finally:
        session.release()
        run.finalize()

    logger.info("Generated %d of %d PDF file(s)", run.succeeded, total)
    return run


def convert_urls(
    urls: Sequence[str],
    *,
    settings: Settings | None = None,
    output_root: Path | None = None,
    session_factory: Callable[..., Any] = BrowserSession,
    sleep: Callable[[float], None] = time.sleep,
    now: datetime | None = None,
) -> BatchRun:
    """Full pipeline: capture every URL, then merge the successful pages.

    Raises:
        EmptyBatchError: If *urls* is empty.
        BrowserLaunchError: If the browser cannot be started.
        NoDocumentsError: If no URL produced a PDF.
        EmptyMergeError: If none of the produced PDFs could be merged.
    """
    run = generate_documents(
        urls,
        settings=settings,
        output_root=output_root,
        session_factory=session_factory,
        sleep=sleep,
        now=now,
    )
    if not run.documents:
        raise NoDocumentsError(run.total)

    report = merge_documents(run.documents, run.output_dir / f"merged_{run.timestamp}.pdf")
    run.merged_path = report.output_path
    return run
