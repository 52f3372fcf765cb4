from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
import tomllib

from .errors import MappingReport, MissingFieldError

# Base directory for rule files
_RULES_DIR = Path(__file__).resolve().parent.parent / "config" / "rules"

DEFAULT_NA_VALUES: Tuple[str, ...] = ("", "NA")
PATHWAY_PREFIX = "introduction_pathway"
TAXON_HASH_FIELD = "taxon_id_hash"

# Columns the mapping reads; absent ones are treated as empty in every row.
REQUIRED_COLUMNS: Tuple[str, ...] = (
    "taxon_id_hash",
    "scientific_name",
    "kingdom",
    "phylum",
    "class",
    "order",
    "family",
    "genus",
    "taxon_rank",
    "nomenclatural_code",
    "location",
    "country_code",
    "occurrence_status",
    "establishment_means",
    "degree_of_establishment",
    "date_first_observation",
    "date_last_observation",
    "source",
    "occurrence_remarks",
    "terrestrial",
    "marine",
    "freshwater",
    "native_range",
)

_CAMEL_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")
_CAMEL_ACRONYM = re.compile(r"([A-Z]+)([A-Z][a-z])")
_NON_ALNUM = re.compile(r"[^0-9a-zA-Z]+")

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def _load_rules(name: str) -> Dict[str, Any]:
    """Load a TOML rule file from the configuration directory.

    Parameters
    ----------
    name: str
        Name of the rule file without extension.
    """

    path = _RULES_DIR / f"{name}.toml"
    if not path.exists():
        return {}
    with path.open("rb") as fh:
        return tomllib.load(fh)


def clean_column_name(name: str) -> str:
    """Return ``name`` in lowercase snake_case.

    ``"Taxon ID hash"``, ``"taxonIDHash"`` and ``"taxon-id-hash"`` all become
    ``"taxon_id_hash"``.
    """

    name = _CAMEL_ACRONYM.sub(r"\1_\2", str(name).strip())
    name = _CAMEL_LOWER_UPPER.sub(r"\1_\2", name)
    name = _NON_ALNUM.sub("_", name).strip("_").lower()
    if not name:
        return "x"
    if name[0].isdigit():
        return f"x{name}"
    return name


def clean_column_names(names: Iterable[str]) -> List[str]:
    """Clean every name, suffixing repeats with ``_2``, ``_3`` and so on."""

    cleaned: List[str] = []
    seen: Dict[str, int] = {}
    for raw in names:
        name = clean_column_name(raw)
        if name in seen:
            seen[name] += 1
            name = f"{name}_{seen[name]}"
        else:
            seen[name] = 1
        cleaned.append(name)
    return cleaned


def is_null(value: Any, na_values: Iterable[str] = DEFAULT_NA_VALUES) -> bool:
    if value is None:
        return True
    return str(value).strip() in set(na_values)


def clean_value(value: Any, na_values: Iterable[str] = DEFAULT_NA_VALUES) -> Optional[str]:
    """Return ``value`` stripped of surrounding whitespace, or ``None`` for NA tokens."""

    if is_null(value, na_values):
        return None
    return str(value).strip()


def build_taxon_id(taxon_hash: str, shortname: str = "alien-herpetofauna-belgium") -> str:
    return f"{shortname}:taxon:{taxon_hash}"


def pathway_columns(columns: Sequence[str]) -> List[str]:
    """Return the pathway slot columns in the order they appear in the table."""

    return [column for column in columns if column.startswith(PATHWAY_PREFIX)]


def split_delimited(value: Optional[str], delimiter: str = "|") -> List[str]:
    """Split a delimited multi-value field.

    ``None`` yields an empty list.  Each part is stripped of whitespace and
    empty parts are dropped, so ``"Asia | |North America"`` gives
    ``["Asia", "North America"]``.
    """

    if value is None:
        return []
    parts = (part.strip() for part in value.split(delimiter))
    return [part for part in parts if part]


def build_event_date(first: Optional[str], last: Optional[str]) -> Optional[str]:
    """Combine first and last observation dates into an ISO 8601 interval.

    Either end may be missing, giving an open interval (``"2001/"`` or
    ``"/2005"``); ``None`` is returned when both are missing.
    """

    if first is None and last is None:
        return None
    return f"{first or ''}/{last or ''}"


def load_locations(overrides: Optional[Mapping[str, Sequence[str]]] = None) -> Dict[str, Tuple[str, str]]:
    """Return the location lookup table.

    Entries come from ``config/rules/locations.toml``; ``overrides`` (the
    ``[locations]`` config section) can add or replace entries.  Each value is
    a ``[locationID, locality]`` pair.
    """

    table: Dict[str, Tuple[str, str]] = {}
    merged: Dict[str, Any] = dict(_load_rules("locations"))
    merged.update(overrides or {})
    for name, value in merged.items():
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            raise ValueError(f"location '{name}' must map to [locationID, locality], got {value!r}")
        table[name] = (str(value[0]), str(value[1]))
    return table


def lookup_location(
    location: Optional[str], locations: Mapping[str, Tuple[str, str]]
) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(locationID, locality)`` for an exact match, else ``(None, None)``."""

    if location is None:
        return None, None
    return locations.get(location, (None, None))


@dataclass
class NormalizedRow:
    """One input row after column and value cleaning."""

    index: int
    taxon_id: str
    values: Dict[str, Optional[str]]

    def get(self, column: str) -> Optional[str]:
        return self.values.get(column)


@dataclass
class NormalizedTable:
    rows: List[NormalizedRow] = field(default_factory=list)
    pathway_slots: List[str] = field(default_factory=list)
    columns: List[str] = field(default_factory=list)


def normalize_rows(
    rows: Sequence[Mapping[str, Any]],
    report: MappingReport,
    shortname: str = "alien-herpetofauna-belgium",
    na_values: Iterable[str] = DEFAULT_NA_VALUES,
) -> NormalizedTable:
    """Canonicalise column names and values and attach a taxon ID to each row.

    Rows without a ``taxon_id_hash`` are recorded in ``report`` as
    :class:`MissingFieldError` and left out of the returned table.
    """

    na_values = tuple(na_values)
    raw_columns: List[str] = []
    for row in rows:
        for key in row.keys():
            if key not in raw_columns:
                raw_columns.append(key)
    columns = clean_column_names(raw_columns)
    renames = dict(zip(raw_columns, columns))

    missing = [column for column in REQUIRED_COLUMNS if column not in columns]
    if not pathway_columns(columns):
        missing.append(f"{PATHWAY_PREFIX}_1")
    if missing:
        logger.warning("Input lacks columns %s; treating them as empty", ", ".join(missing))
        report.missing_columns.extend(missing)

    table = NormalizedTable(pathway_slots=pathway_columns(columns), columns=columns)
    for index, row in enumerate(rows):
        values = {column: None for column in columns}
        for key, value in row.items():
            values[renames[key]] = clean_value(value, na_values)
        taxon_hash = values.get(TAXON_HASH_FIELD)
        if taxon_hash is None:
            issue = MissingFieldError(
                row_index=index,
                message=f"row {index} has no {TAXON_HASH_FIELD}",
                field=TAXON_HASH_FIELD,
            )
            logger.warning("Dropping row %d: missing %s", index, TAXON_HASH_FIELD)
            report.add(issue)
            continue
        table.rows.append(
            NormalizedRow(index=index, taxon_id=build_taxon_id(taxon_hash, shortname), values=values)
        )
    return table
