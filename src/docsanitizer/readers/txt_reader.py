import json
import logging
import re
from pathlib import Path

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def read_txt(path: Path) -> str:
    """Read a plain text file, trying UTF-8 first then latin-1."""
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        logger.warning("%s: not valid UTF-8, falling back to latin-1 encoding", path.name)
        return path.read_text(encoding="latin-1")


def read_json(path: Path) -> str:
    """Read a JSON file, pretty-printed when it parses."""
    raw = read_txt(path)
    try:
        return json.dumps(json.loads(raw), ensure_ascii=False, indent=2)
    except json.JSONDecodeError:
        logger.warning("%s: invalid JSON, scanning it as plain text", path.name)
        return raw


def read_html(path: Path) -> str:
    """Visible text of an HTML file, with character references decoded."""
    soup = BeautifulSoup(read_txt(path), "html.parser")
    for element in soup(["script", "style", "head", "meta", "link"]):
        element.decompose()
    return _WHITESPACE.sub(" ", soup.get_text(" ")).strip()
