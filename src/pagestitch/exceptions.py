"""PageStitch exception hierarchy.

Per-item errors (``NavigationError``, ``CaptureError``, ``ConversionError``)
are caught at the job or merge-input boundary and never abort a run.
Everything else here is fatal for the step that raises it.
"""

from __future__ import annotations


class PageStitchError(Exception):
    """Base exception for all PageStitch errors."""


class BrowserLaunchError(PageStitchError):
    """Raised when the shared browser process cannot be started."""


class NavigationError(PageStitchError):
    """Raised when a page cannot be reached at all (DNS, refused, TLS...).

    Attributes:
        url: The URL that failed.
        reason: Short human-readable failure reason.
    """

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Navigation to {url} failed: {reason}")


class CaptureError(PageStitchError):
    """Raised when a page snapshot could not be produced."""


class ConversionError(PageStitchError):
    """Raised when a snapshot cannot be wrapped into a PDF page."""


class EmptyBatchError(PageStitchError, ValueError):
    """Raised when a batch run is started with no URLs."""


class NoDocumentsError(PageStitchError):
    """Raised when a batch run finished without a single converted page.

    Attributes:
        total: Number of URLs that were attempted.
    """

    def __init__(self, total: int) -> None:
        self.total = total
        super().__init__(f"No documents were produced (0 of {total} URLs succeeded)")


class MergeError(PageStitchError):
    """Raised when the merged document cannot be produced."""


class EmptyMergeError(MergeError, ValueError):
    """Raised when there is nothing to merge."""
