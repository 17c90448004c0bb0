"""Render homework PDFs to a single PNG the grading model can read."""
from __future__ import annotations

import base64
import logging
from io import BytesIO

from django.conf import settings
from pdf2image import convert_from_bytes
from pdf2image.exceptions import PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError
from PIL import Image, UnidentifiedImageError

from .errors import ConversionError

logger = logging.getLogger(__name__)


def _stack_pages(pages: list[Image.Image]) -> Image.Image:
    width = max(page.width for page in pages)
    height = sum(page.height for page in pages)
    sheet = Image.new("RGB", (width, height), "white")
    offset = 0
    for page in pages:
        sheet.paste(page.convert("RGB"), (0, offset))
        offset += page.height
    return sheet


def convert_pdf_to_image(pdf_bytes: bytes, *, dpi: int | None = None) -> str:
    """Return the PDF's pages stacked top to bottom as a base64 PNG."""

    if not pdf_bytes:
        raise ConversionError("The PDF file is empty.")

    dpi = dpi or settings.PDF_CONVERSION_DPI
    try:
        pages = convert_from_bytes(pdf_bytes, dpi=dpi)
    except PDFInfoNotInstalledError as exc:
        logger.exception("poppler is not installed")
        raise ConversionError("PDF conversion is not available on this server.") from exc
    except (PDFPageCountError, PDFSyntaxError, UnidentifiedImageError) as exc:
        logger.warning("Could not read PDF: %s", exc)
        raise ConversionError("Could not read the PDF file.") from exc

    if not pages:
        raise ConversionError("The PDF file has no pages.")

    buffer = BytesIO()
    _stack_pages(pages).save(buffer, format="PNG")
    logger.debug("Converted PDF with %s page(s) at %s dpi", len(pages), dpi)
    return base64.b64encode(buffer.getvalue()).decode("ascii")
