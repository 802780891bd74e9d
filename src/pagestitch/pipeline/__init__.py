"""Batch pipeline: ordered URL list to per-page PDFs and one merged PDF."""

from pagestitch.pipeline.orchestrator import (
    convert_urls,
    create_run,
    generate_documents,
    run_timestamp,
    sanitize_host,
)

__all__ = ["convert_urls", "create_run", "generate_documents", "run_timestamp", "sanitize_host"]
