from .read import read_checklist, fetch_checklist, parse_csv_text
from .write import write_dwc_tables, write_manifest, write_report, write_table_csv
from .logs import setup_logging

__all__ = [
    "read_checklist",
    "fetch_checklist",
    "parse_csv_text",
    "write_dwc_tables",
    "write_manifest",
    "write_report",
    "write_table_csv",
    "setup_logging",
]
