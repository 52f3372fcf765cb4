from __future__ import annotations

import logging
from datetime import datetime, timezone
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Optional
import tomllib

import typer
from pydantic import ValidationError

from dwc import DatasetMetadata, MappingError, load_locations, map_to_darwin_core
from dwc.archive import SEMVER_RE, build_manifest, create_archive
from dwc.errors import ChecklistReadError
from dwc.mapper import DarwinCoreTables
from io_utils.logs import setup_logging
from io_utils.read import read_checklist
from io_utils.write import write_dwc_tables, write_manifest, write_report


def load_config(config_path: Optional[Path]) -> Dict[str, Any]:
    cfg_path = resources.files("config").joinpath("config.default.toml")
    with cfg_path.open("rb") as f:
        config = tomllib.load(f)
    if config_path:
        with config_path.open("rb") as f:
            user_cfg = tomllib.load(f)
        _deep_update(config, user_cfg)
    return config


def _deep_update(d: Dict[str, Any], u: Dict[str, Any]) -> Dict[str, Any]:
    for k, v in u.items():
        if isinstance(v, dict) and isinstance(d.get(k), dict):
            _deep_update(d[k], v)
        else:
            d[k] = v
    return d


def map_cli(
    source: Optional[str],
    output: Path,
    config: Optional[Path] = None,
    strict: Optional[bool] = None,
) -> DarwinCoreTables:
    """Core logic behind ``map``: read, map and write the Darwin Core tables.

    ``source`` falls back to ``[source].url`` from the configuration.  The
    four CSV files, ``report.json`` and ``manifest.json`` are written to
    ``output``.  :class:`~dwc.errors.MappingError` propagates in strict mode
    after the report has been written.
    """
    setup_logging(output)
    cfg = load_config(config)
    source_cfg = cfg.get("source", {})
    mapping_cfg = cfg.get("mapping", {})

    source = source or source_cfg.get("url")
    if not source:
        raise ValueError("no input given and [source].url is not configured")
    if strict is None:
        strict = bool(mapping_cfg.get("strict", False))

    started_at = datetime.now(timezone.utc).isoformat()
    rows = read_checklist(source, timeout=int(source_cfg.get("timeout", 30)))
    metadata = DatasetMetadata(**cfg.get("dataset", {}))
    locations = load_locations(cfg.get("locations", {}))

    try:
        tables = map_to_darwin_core(
            rows,
            metadata=metadata,
            locations=locations,
            na_values=mapping_cfg.get("na_values"),
            strict=strict,
        )
    except MappingError as exc:
        write_report(output, exc.report)
        raise

    paths = write_dwc_tables(output, tables)
    write_report(output, tables.report)
    meta = build_manifest({"source": source, "strict": strict})
    meta.update(
        {
            "started_at": started_at,
            "input_rows": len(rows),
            "tables": {path.name: _count(tables, path.name) for path in paths},
            "errors": len(tables.report.errors),
            "warnings": len(tables.report.warnings),
        }
    )
    write_manifest(output, meta)
    logging.info("Wrote %s to %s", ", ".join(path.name for path in paths), output)
    return tables


def _count(tables: DarwinCoreTables, filename: str) -> int:
    return len(tables.tables()[filename])


app = typer.Typer(help="Alien herpetofauna checklist to Darwin Core mapper")


@app.command("map")
def map_checklist(
    input: Optional[str] = typer.Option(
        None,
        "--input",
        "-i",
        help="Checklist CSV/XLSX/ODS file or CSV export URL (defaults to [source].url)",
    ),
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        file_okay=False,
        dir_okay=True,
        help="Output directory",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        exists=True,
        dir_okay=False,
        file_okay=True,
        help="Optional config file",
    ),
    strict: Optional[bool] = typer.Option(
        None,
        "--strict/--no-strict",
        help="Fail when rows are dropped for missing identifiers or taxon fields "
        "(defaults to [mapping].strict)",
    ),
) -> None:
    """Map the checklist to taxon, distribution, species profile and description CSVs."""
    try:
        tables = map_cli(input, output, config, strict)
    except MappingError as e:
        typer.echo(f"❌ Mapping failed: {e}", err=True)
        typer.echo(f"See {output / 'report.json'} for details", err=True)
        raise typer.Exit(1)
    except tomllib.TOMLDecodeError as e:
        typer.echo(f"❌ Invalid config file {config}: {e}", err=True)
        raise typer.Exit(1)
    except ValidationError as e:
        typer.echo(f"❌ Invalid [dataset] configuration: {e}", err=True)
        raise typer.Exit(1)
    except (ChecklistReadError, FileNotFoundError, ValueError) as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✅ Darwin Core tables written to: {output}")
    typer.echo(
        f"📊 {len(tables.taxon)} taxa, {len(tables.distribution)} distributions, "
        f"{len(tables.species_profile)} species profiles, {len(tables.description)} descriptions"
    )
    if tables.report.errors or tables.report.warnings:
        typer.echo(
            f"⚠️  {len(tables.report.errors)} errors, {len(tables.report.warnings)} warnings "
            f"(see report.json)"
        )


@app.command()
def archive(
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        exists=True,
        file_okay=False,
        dir_okay=True,
        help="Directory containing the Darwin Core CSV files",
    ),
    version: Optional[str] = typer.Option(
        None,
        "--version",
        "-v",
        help="Semantic version for the bundle (defaults to [export].version)",
    ),
    compress: bool = typer.Option(
        True,
        "--compress/--no-compress",
        help="Create compressed ZIP archive",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        exists=True,
        dir_okay=False,
        file_okay=True,
        help="Optional config file for export settings",
    ),
) -> None:
    """Write meta.xml and optionally bundle a Darwin Core Archive."""
    try:
        cfg = load_config(config)
    except tomllib.TOMLDecodeError as e:
        typer.echo(f"❌ Invalid config file {config}: {e}", err=True)
        raise typer.Exit(1)
    version = version or cfg.get("export", {}).get("version", "1.0.0")
    if not SEMVER_RE.match(version):
        typer.echo(
            f"Error: Version '{version}' must follow semantic versioning (e.g., '1.0.0')",
            err=True,
        )
        raise typer.Exit(1)

    archive_path = create_archive(output, compress=compress, version=version)
    if compress:
        typer.echo(f"✅ Archive created: {archive_path}")
        typer.echo(f"🏷️  Version: {version}")
    else:
        typer.echo(f"✅ DwC-A files prepared in: {output}")
        typer.echo(f"📄 Meta.xml created: {archive_path}")


if __name__ == "__main__":
    app()
