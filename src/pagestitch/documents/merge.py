"""Concatenate ordered PDF documents into one.

Every page of every input is copied verbatim, in input order. An input that
cannot be read (or contributes no pages) is logged and skipped; the merge
continues with the rest. Having nothing to merge is a precondition failure
and no output file is written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from pypdf import PdfReader, PdfWriter

from pagestitch.exceptions import EmptyMergeError, MergeError

logger = logging.getLogger(__name__)


@dataclass
class MergeReport:
    """Outcome of a merge."""

    output_path: Path
    merged: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    page_count: int = 0


def merge_documents(pdf_paths: list[Path], output_path: Path) -> MergeReport:
    """Merge *pdf_paths* in order into *output_path*.

    Raises:
        EmptyMergeError: If *pdf_paths* is empty, or every input was skipped.
        MergeError: If the merged file cannot be written.
    """
    if not pdf_paths:
        raise EmptyMergeError("No PDF files to merge")

    output_path = Path(output_path)
    report = MergeReport(output_path=output_path)
    writer = PdfWriter()

    logger.info("Merging %d PDF(s)...", len(pdf_paths))
    for pdf_path in map(Path, pdf_paths):
        try:
            reader = PdfReader(pdf_path)
            pages = list(reader.pages)
            if not pages:
                raise MergeError("document has no pages")
            for page in pages:
                writer.add_page(page)
        except Exception as e:
            logger.error("Error processing %s: %s", pdf_path, e)
            report.skipped.append(pdf_path)
            continue
        report.merged.append(pdf_path)
        report.page_count += len(pages)
        logger.info("Added %s to merged document", pdf_path.name)

    if not report.merged:
        raise EmptyMergeError(f"None of the {len(pdf_paths)} PDF(s) could be read; nothing to merge")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(output_path, "wb") as f:
            writer.write(f)
    except OSError as e:
        raise MergeError(f"Cannot write merged PDF {output_path}: {e}") from e

    if report.skipped:
        logger.warning("Merge skipped %d of %d input(s)", len(report.skipped), len(pdf_paths))
    logger.info("PDFs merged successfully into: %s (%d pages)", output_path, report.page_count)
    return report
