"""Utilities for creating Darwin Core Archives.

This module builds a ``meta.xml`` descriptor for the checklist: ``taxon.csv``
is the core and ``distribution.csv``, ``speciesprofile.csv`` and
``description.csv`` are extensions linked to it through ``taxonID``.  The
descriptor can optionally be bundled with the CSV files into a ZIP file to
form a complete Darwin Core Archive (DwC-A).
"""

from __future__ import annotations

from pathlib import Path
from xml.etree.ElementTree import Element, SubElement, tostring
from xml.dom import minidom
from zipfile import ZipFile, ZIP_DEFLATED
from typing import Any, Dict, List
from datetime import datetime, timezone
import json
import subprocess
import re
import logging

from .schema import TABLE_RECORDS, DwcTableRecord, term_uri

SEMVER_RE = re.compile(r"^\d+\.\d+\.\d+$")

_CSV_ATTRIBUTES = {
    "encoding": "UTF-8",
    "linesTerminatedBy": "\\n",
    "fieldsTerminatedBy": ",",
    "fieldsEnclosedBy": '"',
    "ignoreHeaderLines": "1",
}

logger = logging.getLogger(__name__)


def build_manifest(
    filters: Dict[str, Any] | None = None,
    version: str | None = None,
    include_git_info: bool = True,
) -> Dict[str, Any]:
    """Return run metadata for archive exports.

    Parameters
    ----------
    filters:
        Extra key/value context recorded with the export.
    version:
        Semantic version string for the export.
    include_git_info:
        Whether to include the current git commit.
    """

    manifest: Dict[str, Any] = {
        "format_version": "1.0.0",
        "export_type": "darwin_core_archive",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "filters": filters or {},
    }

    if version:
        if not SEMVER_RE.match(version):
            logger.warning(f"Version '{version}' does not follow semantic versioning")
        manifest["version"] = version

    if include_git_info:
        try:
            commit = subprocess.check_output(
                ["git", "rev-parse", "HEAD"], text=True, stderr=subprocess.DEVNULL
            ).strip()
            manifest["git_commit"] = commit
            manifest["git_commit_short"] = commit[:7]
        except (subprocess.CalledProcessError, FileNotFoundError):
            logger.debug("Git information not available")
            manifest["git_commit"] = "unknown"

    return manifest


def _add_table(root: Element, tag: str, record_type: type[DwcTableRecord], id_tag: str) -> None:
    table = SubElement(root, tag, {**_CSV_ATTRIBUTES, "rowType": record_type.ROW_TYPE})
    files_el = SubElement(table, "files")
    SubElement(files_el, "location").text = record_type.FILENAME
    SubElement(table, id_tag, index=str(record_type.COLUMNS.index("taxonID")))
    for idx, column in enumerate(record_type.COLUMNS):
        SubElement(table, "field", index=str(idx), term=term_uri(column))


def build_meta_xml(output_dir: Path) -> Path:
    """Create ``meta.xml`` for a Darwin Core Archive.

    Parameters
    ----------
    output_dir:
        Directory containing the taxon core and extension CSV files.

    Returns
    -------
    Path to the written ``meta.xml`` file.
    """

    output_dir.mkdir(parents=True, exist_ok=True)
    root = Element("archive", xmlns="http://rs.tdwg.org/dwc/text/")

    core, *extensions = TABLE_RECORDS
    _add_table(root, "core", core, "id")
    for extension in extensions:
        _add_table(root, "extension", extension, "coreid")

    xml_bytes = tostring(root, encoding="utf-8")
    pretty = minidom.parseString(xml_bytes).toprettyxml(indent="  ", encoding="UTF-8")
    meta_path = output_dir / "meta.xml"
    meta_path.write_bytes(pretty)
    return meta_path


def create_archive(
    output_dir: Path,
    *,
    compress: bool = False,
    version: str | None = None,
    filters: Dict[str, Any] | None = None,
    additional_files: List[str] | None = None,
) -> Path:
    """Ensure DwC-A sidecar files exist and optionally create a ZIP archive.

    Parameters
    ----------
    output_dir:
        Directory containing the DwC CSV exports.
    compress:
        If ``True``, a versioned ``dwca_v<version>.zip`` bundle is created in
        ``output_dir`` containing the CSV files, ``meta.xml`` and
        ``manifest.json``.  An existing ``manifest.json`` (written by the
        mapping run) is updated in place rather than replaced.
    version:
        Semantic version string for the bundle when ``compress`` is ``True``.
    filters:
        Extra context recorded in the manifest.
    additional_files:
        Additional files to include in the archive beyond the standard set.

    Returns
    -------
    Path to ``meta.xml`` if ``compress`` is ``False``; otherwise the path to the
    created ZIP file.
    """

    from io_utils.write import write_manifest

    if compress and (version is None or not SEMVER_RE.match(version)):
        raise ValueError("version must be provided and follow semantic versioning")

    manifest = build_manifest(filters, version=version)
    manifest_path = output_dir / "manifest.json"
    if manifest_path.exists():
        # Keep the mapping run's record; archive keys win on conflict
        previous = json.loads(manifest_path.read_text())
        manifest["filters"] = {**previous.get("filters", {}), **manifest["filters"]}
        manifest = {**previous, **manifest}
    write_manifest(output_dir, manifest)
    meta_path = build_meta_xml(output_dir)
    if not compress:
        return meta_path

    files_to_include = [record.FILENAME for record in TABLE_RECORDS]
    files_to_include += ["meta.xml", "manifest.json"]
    if additional_files:
        files_to_include.extend(additional_files)

    archive_path = output_dir / f"dwca_v{version}.zip"
    logger.info(f"Creating archive: {archive_path.name}")

    with ZipFile(archive_path, "w", ZIP_DEFLATED) as zf:
        files_added = []
        for name in files_to_include:
            file_path = output_dir / name
            if file_path.exists():
                zf.write(file_path, arcname=name)
                files_added.append(name)
            else:
                logger.warning(f"Requested file {name} not found, skipping")

        logger.info(f"Archive created with {len(files_added)} files: {', '.join(files_added)}")

    return archive_path
