from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List
import csv
import io
import logging
import urllib.error
import urllib.request

import pyexcel

from dwc.errors import ChecklistReadError

SPREADSHEET_EXTENSIONS = {".xlsx", ".ods"}

logger = logging.getLogger(__name__)


def _cell_to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def parse_csv_text(text: str) -> List[Dict[str, str]]:
    """Parse CSV text into rows keyed by the header row."""

    reader = csv.DictReader(io.StringIO(text))
    return [
        {key: value if value is not None else "" for key, value in row.items() if key is not None}
        for row in reader
    ]


def fetch_checklist(url: str, timeout: int = 30) -> List[Dict[str, str]]:
    """Download a CSV export (e.g. a published spreadsheet) and parse it."""

    try:
        logger.info(f"Fetching checklist from {url}")
        with urllib.request.urlopen(url, timeout=timeout) as response:
            content = response.read()
    except (urllib.error.URLError, TimeoutError) as e:
        raise ChecklistReadError(f"Failed to fetch checklist from {url}: {e}") from e
    return parse_csv_text(content.decode("utf-8-sig"))


def read_spreadsheet(path: Path) -> List[Dict[str, str]]:
    """Read the first sheet of an XLSX/ODS workbook with every cell as text."""

    try:
        records = pyexcel.get_records(file_name=str(path))
        return [{str(key): _cell_to_text(value) for key, value in record.items()} for record in records]
    finally:
        pyexcel.free_resources()


def read_checklist(source: str | Path, timeout: int = 30) -> List[Dict[str, str]]:
    """Load the source checklist as a list of string-keyed rows.

    ``source`` may be an ``http(s)://`` URL serving CSV, a spreadsheet
    (``.xlsx``/``.ods``) or a local CSV file.
    """

    source_str = str(source)
    if source_str.startswith(("http://", "https://")):
        return fetch_checklist(source_str, timeout=timeout)

    path = Path(source_str)
    if not path.exists():
        raise FileNotFoundError(f"Checklist not found: {path}")
    if path.suffix.lower() in SPREADSHEET_EXTENSIONS:
        rows = read_spreadsheet(path)
    else:
        rows = parse_csv_text(path.read_text(encoding="utf-8-sig"))
    logger.info(f"Read {len(rows)} rows from {path}")
    return rows
