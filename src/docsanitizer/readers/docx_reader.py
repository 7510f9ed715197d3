from pathlib import Path

from docx import Document


def read_docx(path: Path) -> str:
    """Text of a .docx file: body paragraphs, then table cells row by row."""
    doc = Document(str(path))
    lines = [para.text for para in doc.paragraphs]

    for table in doc.tables:
        for row in table.rows:
            lines.append("\t".join(cell.text for cell in row.cells))

    return "\n".join(lines)
