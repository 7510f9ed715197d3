from datetime import datetime
from pathlib import Path

import openpyxl


def _cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def read_xlsx(path: Path) -> str:
    """Text of an .xlsx workbook: one header per sheet, then tab-separated rows."""
    wb = openpyxl.load_workbook(str(path), data_only=True, read_only=True)
    parts: list[str] = []

    for ws in wb.worksheets:
        parts.append(f"--- Sheet: {ws.title} ---")
        for row in ws.iter_rows(values_only=True):
            values = [_cell_text(v) for v in row]
            if any(v.strip() for v in values):
                parts.append("\t".join(values))
        parts.append("")

    wb.close()
    return "\n".join(parts)
