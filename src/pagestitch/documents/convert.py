"""Wrap a single raster snapshot into a single-page PDF.

The page is exactly the image's pixel size (one PDF point per pixel) and the
image fills it from the origin with no scaling or cropping. PNG data is
embedded losslessly by ``img2pdf``; images with an alpha channel are first
flattened onto white, since PDF image streams carry no alpha.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path

import img2pdf
from PIL import Image
from pypdf import PdfReader, PdfWriter
from pypdf.generic import NameObject

from pagestitch.exceptions import ConversionError

logger = logging.getLogger(__name__)

# 72 dpi makes one image pixel exactly one PDF point.
_ONE_POINT_PER_PIXEL = img2pdf.get_fixed_dpi_layout_fun((72, 72))


def _has_alpha(img: Image.Image) -> bool:
    return img.mode in ("RGBA", "LA", "PA") or (img.mode == "P" and "transparency" in img.info)


def _image_source(image_path: Path) -> tuple[bytes, tuple[int, int]]:
    """Return embeddable image bytes and the pixel size."""
    with Image.open(image_path) as img:
        img.load()
        size = img.size
        if not _has_alpha(img):
            return image_path.read_bytes(), size
        rgba = img.convert("RGBA")
        flat = Image.new("RGB", size, (255, 255, 255))
        flat.paste(rgba, mask=rgba.getchannel("A"))
        buf = io.BytesIO()
        flat.save(buf, format="PNG")
        return buf.getvalue(), size


def _one_to_one(pdf_bytes: bytes) -> bytes:
    """Undo img2pdf's ``/UserUnit`` scaling of pages above 14400 pt.

    img2pdf shrinks the page boxes of oversized images and sets
    ``/UserUnit`` instead; scaling the page back up keeps every page in the
    same one-point-per-pixel coordinate space.
    """
    reader = PdfReader(io.BytesIO(pdf_bytes))
    unit = reader.pages[0].user_unit
    if unit == 1:
        return pdf_bytes

    writer = PdfWriter()
    page = writer.add_page(reader.pages[0])
    page.scale_by(unit)
    del page[NameObject("/UserUnit")]
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


def image_to_pdf(image_path: Path, pdf_path: Path) -> Path:
    """Convert *image_path* into a one-page PDF at *pdf_path*.

    Raises:
        ConversionError: If the image cannot be read or embedded.
    """
    image_path = Path(image_path)
    pdf_path = Path(pdf_path)
    try:
        data, (width, height) = _image_source(image_path)
        pdf_bytes = _one_to_one(img2pdf.convert(data, layout_fun=_ONE_POINT_PER_PIXEL))
    except Exception as e:
        raise ConversionError(f"Cannot convert {image_path.name} to PDF: {e}") from e

    pdf_path.parent.mkdir(parents=True, exist_ok=True)
    pdf_path.write_bytes(pdf_bytes)
    logger.debug("Converted %s (%dx%d) -> %s", image_path.name, width, height, pdf_path.name)
    return pdf_path


def convert_to_pdf(image_path: Path, pdf_path: Path) -> bool:
    """Like :func:`image_to_pdf` but reports failure as ``False``."""
    try:
        image_to_pdf(image_path, pdf_path)
        return True
    except (ConversionError, OSError) as e:
        logger.error("Error converting to PDF: %s", e)
        return False
