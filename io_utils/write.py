from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Sequence
import csv
import json

from dwc.errors import MappingReport
from dwc.mapper import DarwinCoreTables
from dwc.schema import DwcTableRecord, TABLE_RECORDS


def write_manifest(output_dir: Path, meta: Dict[str, Any]) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    manifest_path = output_dir / "manifest.json"
    manifest_path.write_text(json.dumps(meta, indent=2, default=str))


def write_report(output_dir: Path, report: MappingReport) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    report_path = output_dir / "report.json"
    report_path.write_text(json.dumps(report.to_dict(), indent=2))
    return report_path


def write_table_csv(
    csv_path: Path, columns: Sequence[str], rows: Iterable[DwcTableRecord]
) -> Path:
    """Write ``rows`` with a header in ``columns`` order; ``None`` becomes an empty cell."""
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=list(columns), lineterminator="\n")
        writer.writeheader()
        for row in rows:
            writer.writerow(row.to_dict())
    return csv_path


def write_dwc_tables(output_dir: Path, tables: DarwinCoreTables) -> List[Path]:
    """Write the taxon core and the three extensions as CSV files."""
    output_dir.mkdir(parents=True, exist_ok=True)
    by_name: Mapping[str, List[DwcTableRecord]] = tables.tables()
    return [
        write_table_csv(output_dir / record.FILENAME, record.COLUMNS, by_name[record.FILENAME])
        for record in TABLE_RECORDS
    ]
