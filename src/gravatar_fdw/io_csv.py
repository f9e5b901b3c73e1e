"""CSV serialization helpers."""

from __future__ import annotations

import csv
from collections.abc import Sequence
from pathlib import Path

from .models import Cell


def render_cell(cell: Cell | None) -> str:
    """Render one cell as CSV text; missing values become empty strings."""
    if cell is None:
        return ""
    if isinstance(cell.value, bool):
        return "true" if cell.value else "false"
    return str(cell.value)


def write_rows(path: str, columns: Sequence[str], rows: Sequence[Sequence[Cell | None]]) -> None:
    """Write projected rows to CSV with the requested column names as header."""
    output_path = Path(path)
    with output_path.open("w", newline="", encoding="utf-8") as file_obj:
        writer = csv.writer(file_obj)
        writer.writerow(columns)
        for row in rows:
            writer.writerow([render_cell(cell) for cell in row])
