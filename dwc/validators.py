from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Tuple

from .errors import IncompleteTaxonError, UnmappedLocationWarning
from .normalize import NormalizedRow

# Taxon-level fields without which a taxon record cannot be published.
TAXON_REQUIRED_FIELDS: Tuple[str, ...] = ("scientific_name", "kingdom")


def validate_minimal_fields(row: NormalizedRow, minimal_fields: Iterable[str]) -> List[str]:
    """Return a list of required fields missing from ``row``."""

    missing = [field for field in minimal_fields if row.get(field) is None]
    return missing


def validate_taxon(row: NormalizedRow) -> Optional[IncompleteTaxonError]:
    """Return an :class:`IncompleteTaxonError` when ``row`` cannot form a taxon record."""

    missing = validate_minimal_fields(row, TAXON_REQUIRED_FIELDS)
    if not missing:
        return None
    return IncompleteTaxonError(
        row_index=row.index,
        message=f"{row.taxon_id} lacks {', '.join(missing)}",
        taxon_id=row.taxon_id,
        fields=tuple(missing),
    )


def validate_location(
    row: NormalizedRow, locations: Mapping[str, Tuple[str, str]]
) -> Optional[UnmappedLocationWarning]:
    """Return a warning when the row's location has no lookup entry."""

    location = row.get("location")
    if location in locations:
        return None
    if location is None:
        message = f"{row.taxon_id} has no location"
    else:
        message = f"{row.taxon_id} has unmapped location '{location}'"
    return UnmappedLocationWarning(
        row_index=row.index, message=message, taxon_id=row.taxon_id, location=location
    )
