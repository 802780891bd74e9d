"""PDF building blocks: snapshot-to-page conversion and ordered merging."""

from pagestitch.documents.convert import convert_to_pdf, image_to_pdf
from pagestitch.documents.merge import MergeReport, merge_documents

__all__ = ["MergeReport", "convert_to_pdf", "image_to_pdf", "merge_documents"]
