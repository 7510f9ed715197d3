import logging
from pathlib import Path

import fitz  # PyMuPDF

logger = logging.getLogger(__name__)


def read_pdf(path: Path) -> str:
    """Text of a PDF file, page by page."""
    doc = fitz.open(str(path))
    pages = [page.get_text() for page in doc]
    doc.close()

    if not any(p.strip() for p in pages):
        logger.warning(
            "PDF '%s' contains no extractable text, it may be a scanned document. "
            "Scanned PDFs require OCR (not supported).",
            path.name,
        )

    return "\n".join(pages)
