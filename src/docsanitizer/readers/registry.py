import logging
from pathlib import Path

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = {".txt", ".md", ".csv"}
SUPPORTED_EXTENSIONS = TEXT_EXTENSIONS | {".json", ".html", ".htm", ".docx", ".xlsx", ".pdf"}

UNSUPPORTED_WITH_WARNING: dict[str, str] = {
    ".doc": (
        "Legacy .doc format is not supported. "
        "Please convert to .docx first (e.g., using LibreOffice: "
        "libreoffice --headless --convert-to docx file.doc)"
    ),
    ".xls": (
        "Legacy .xls format is not supported. "
        "Please convert to .xlsx first (e.g., using LibreOffice: "
        "libreoffice --headless --convert-to xlsx file.xls)"
    ),
}


def read_document(path: Path) -> str | None:
    """Extract the plain text of a document based on its file extension.

    Returns None if the format is unsupported.
    """
    ext = path.suffix.lower()

    if ext in UNSUPPORTED_WITH_WARNING:
        logger.warning("%s: %s", path.name, UNSUPPORTED_WITH_WARNING[ext])
        return None

    if ext not in SUPPORTED_EXTENSIONS:
        logger.debug("Skipping unsupported file: %s", path.name)
        return None

    if ext in TEXT_EXTENSIONS:
        from .txt_reader import read_txt

        return read_txt(path)
    if ext == ".json":
        from .txt_reader import read_json

        return read_json(path)
    if ext in (".html", ".htm"):
        from .txt_reader import read_html

        return read_html(path)
    if ext == ".docx":
        from .docx_reader import read_docx

        return read_docx(path)
    if ext == ".xlsx":
        from .excel_reader import read_xlsx

        return read_xlsx(path)
    if ext == ".pdf":
        from .pdf_reader import read_pdf

        return read_pdf(path)
    return None  # unreachable but satisfies type checker


def is_binary_format(path: Path) -> bool:
    return path.suffix.lower() in (".docx", ".xlsx", ".pdf")


def list_supported_files(path: Path) -> list[Path]:
    """List all supported files in a directory (non-recursive) or return [path] if it's a file."""
    if path.is_file():
        ext = path.suffix.lower()
        if ext in SUPPORTED_EXTENSIONS or ext in UNSUPPORTED_WITH_WARNING:
            return [path]
        return []

    files = []
    for item in sorted(path.iterdir()):
        if item.is_file():
            ext = item.suffix.lower()
            if ext in SUPPORTED_EXTENSIONS or ext in UNSUPPORTED_WITH_WARNING:
                files.append(item)
    return files
