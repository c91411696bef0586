"""
Source file readers for the ACNC AIS exports.

The ACNC publishes each year as either a CSV or an XLSX file. Both are
turned into a list of plain dicts (header -> text value) so the importer
never has to care which one it came from.
"""

from pathlib import Path

import pandas as pd

CSV_EXTENSIONS = {".csv", ".txt"}
EXCEL_EXTENSIONS = {".xlsx"}


class UnsupportedFileError(ValueError):
    """Source file extension we have no reader for."""


def parse_csv_line(line: str) -> list[str]:
    """
    Split one CSV line on commas outside quoted spans.

    Each value is trimmed and quote characters are dropped. Quoted values
    spanning several lines are not supported; the exports never use them
    in the columns we read.
    """
    values = []
    current = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    values.append("".join(current).strip())
    return values


def read_csv_rows(file_path: Path) -> list[dict]:
    """Read a delimited text export into row dicts."""
    with open(file_path, "r", encoding="utf-8-sig", errors="replace") as f:
        lines = f.read().splitlines()

    if not lines:
        return []

    headers = parse_csv_line(lines[0])
    rows = []
    for line in lines[1:]:
        if not line.strip():
            continue
        values = parse_csv_line(line)
        rows.append({
            header: values[i] if i < len(values) else ""
            for i, header in enumerate(headers)
            if header
        })
    return rows


def read_excel_rows(file_path: Path) -> list[dict]:
    """Read the first sheet of a spreadsheet export into row dicts."""
    df = pd.read_excel(file_path, sheet_name=0, dtype=str, keep_default_na=False)
    df = df.fillna("")
    df.columns = [str(c).strip() for c in df.columns]
    # pandas names blank header cells "Unnamed: 3"
    df = df[[c for c in df.columns if c and not c.startswith("Unnamed:")]]
    return df.to_dict(orient="records")


def read_rows(file_path) -> list[dict]:
    """
    Parse a source file into raw rows.

    Args:
        file_path: Path to a .csv/.txt or .xlsx export

    Returns:
        List of dicts mapping source column name to raw value

    Raises:
        FileNotFoundError: The file does not exist
        UnsupportedFileError: The extension is not one we can read
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Source file not found: {file_path}")

    extension = file_path.suffix.lower()
    if extension in CSV_EXTENSIONS:
        return read_csv_rows(file_path)
    if extension in EXCEL_EXTENSIONS:
        return read_excel_rows(file_path)
    raise UnsupportedFileError(f"Unsupported file format: {extension}")
