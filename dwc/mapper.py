from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import MappingError, MappingReport
from .normalize import (
    DEFAULT_NA_VALUES,
    NormalizedRow,
    NormalizedTable,
    build_event_date,
    load_locations,
    lookup_location,
    normalize_rows,
    split_delimited,
)
from .schema import (
    DatasetMetadata,
    DescriptionRecord,
    DistributionRecord,
    DwcTableRecord,
    SpeciesProfileRecord,
    TaxonRecord,
)
from .validators import validate_location, validate_taxon

logger = logging.getLogger(__name__)

HABITAT_FIELDS = ("terrestrial", "marine", "freshwater")


@dataclass
class DarwinCoreTables:
    """The four output tables of one mapping run and its data-quality report."""

    taxon: List[TaxonRecord] = field(default_factory=list)
    distribution: List[DistributionRecord] = field(default_factory=list)
    species_profile: List[SpeciesProfileRecord] = field(default_factory=list)
    description: List[DescriptionRecord] = field(default_factory=list)
    report: MappingReport = field(default_factory=MappingReport)

    def tables(self) -> Dict[str, List[DwcTableRecord]]:
        """Return the tables keyed by output file name, core first."""

        return {
            TaxonRecord.FILENAME: list(self.taxon),
            DistributionRecord.FILENAME: list(self.distribution),
            SpeciesProfileRecord.FILENAME: list(self.species_profile),
            DescriptionRecord.FILENAME: list(self.description),
        }


def _sort_by_taxon(records: Iterable[DwcTableRecord]) -> List[Any]:
    # sorted() is stable, so rows of one taxon keep their build order
    return sorted(records, key=lambda record: record.taxonID)


def unique_taxa(rows: Iterable[NormalizedRow]) -> List[NormalizedRow]:
    """Keep the first row seen for every taxon ID."""

    seen = set()
    unique: List[NormalizedRow] = []
    for row in rows:
        if row.taxon_id in seen:
            continue
        seen.add(row.taxon_id)
        unique.append(row)
    return unique


def build_taxon(
    table: NormalizedTable, metadata: DatasetMetadata, report: MappingReport
) -> List[TaxonRecord]:
    """Build the taxon core: one record per taxon with the dataset constants.

    Taxa lacking a scientific name or kingdom are reported as
    :class:`~dwc.errors.IncompleteTaxonError` and left out of this table only.
    """

    records: List[TaxonRecord] = []
    for row in unique_taxa(table.rows):
        issue = validate_taxon(row)
        if issue is not None:
            logger.warning("Excluding %s from taxon table: %s", row.taxon_id, issue.message)
            report.add(issue)
            continue
        records.append(
            TaxonRecord(
                language=metadata.language,
                license=metadata.license,
                rightsHolder=metadata.rights_holder,
                accessRights=metadata.access_rights,
                datasetID=metadata.dataset_id,
                institutionCode=metadata.institution_code,
                datasetName=metadata.dataset_name,
                taxonID=row.taxon_id,
                scientificName=row.get("scientific_name"),
                kingdom=row.get("kingdom"),
                phylum=row.get("phylum"),
                class_=row.get("class"),
                order=row.get("order"),
                family=row.get("family"),
                genus=row.get("genus"),
                taxonRank=row.get("taxon_rank"),
                nomenclaturalCode=row.get("nomenclatural_code"),
            )
        )
    return _sort_by_taxon(records)


def row_pathways(row: NormalizedRow, pathway_slots: Sequence[str]) -> List[Optional[str]]:
    """Return the pathway values of ``row`` in slot order.

    A row without any recorded pathway yields ``[None]`` so the species still
    gets a distribution record.
    """

    pathways = [row.get(slot) for slot in pathway_slots]
    recorded = [pathway for pathway in pathways if pathway is not None]
    return recorded or [None]


def build_distribution(
    table: NormalizedTable,
    locations: Mapping[str, Tuple[str, str]],
    report: MappingReport,
) -> List[DistributionRecord]:
    """Build the distribution extension, one record per row and pathway."""

    records: List[DistributionRecord] = []
    for row in table.rows:
        location_id, locality = lookup_location(row.get("location"), locations)
        warning = validate_location(row, locations)
        if warning is not None:
            logger.debug("Row %d: %s", row.index, warning.message)
            report.add(warning)
        event_date = build_event_date(
            row.get("date_first_observation"), row.get("date_last_observation")
        )
        for pathway in row_pathways(row, table.pathway_slots):
            records.append(
                DistributionRecord(
                    taxonID=row.taxon_id,
                    locationID=location_id,
                    locality=locality,
                    countryCode=row.get("country_code"),
                    occurrenceStatus=row.get("occurrence_status"),
                    establishmentMeans=row.get("establishment_means"),
                    degreeOfEstablishment=row.get("degree_of_establishment"),
                    pathway=pathway,
                    eventDate=event_date,
                    source=row.get("source"),
                    occurrenceRemarks=row.get("occurrence_remarks"),
                )
            )
    return _sort_by_taxon(records)


def build_species_profile(table: NormalizedTable) -> List[SpeciesProfileRecord]:
    """Build the species profile extension from the habitat flags.

    Flag values are passed through untouched; taxa without any flag are
    omitted.
    """

    records = [
        SpeciesProfileRecord(
            taxonID=row.taxon_id,
            isMarine=row.get("marine"),
            isFreshwater=row.get("freshwater"),
            isTerrestrial=row.get("terrestrial"),
        )
        for row in unique_taxa(table.rows)
        if any(row.get(flag) is not None for flag in HABITAT_FIELDS)
    ]
    return _sort_by_taxon(records)


def build_description(table: NormalizedTable) -> List[DescriptionRecord]:
    """Build the description extension with one record per native range."""

    records: List[DescriptionRecord] = []
    for row in unique_taxa(table.rows):
        for native_range in split_delimited(row.get("native_range")):
            records.append(
                DescriptionRecord(
                    taxonID=row.taxon_id,
                    description=native_range,
                    type="native range",
                    language="en",
                )
            )
    return _sort_by_taxon(records)


def map_to_darwin_core(
    rows: Sequence[Mapping[str, Any]],
    metadata: Optional[DatasetMetadata] = None,
    locations: Optional[Mapping[str, Tuple[str, str]]] = None,
    na_values: Optional[Iterable[str]] = None,
    strict: bool = False,
) -> DarwinCoreTables:
    """Map checklist rows to the taxon, distribution, species profile and
    description tables.

    Parameters
    ----------
    rows:
        Source rows keyed by column name.  Column names are canonicalised to
        snake_case before use.
    metadata:
        Dataset constants for the taxon core.  Defaults to
        :class:`~dwc.schema.DatasetMetadata`.
    locations:
        Location lookup table.  Defaults to ``config/rules/locations.toml``.
    na_values:
        Cell values treated as empty.
    strict:
        Raise :class:`~dwc.errors.MappingError` instead of returning when any
        row-level error was recorded.
    """

    metadata = metadata or DatasetMetadata()
    locations = load_locations() if locations is None else locations
    na_values = DEFAULT_NA_VALUES if na_values is None else tuple(na_values)

    report = MappingReport()
    table = normalize_rows(rows, report, shortname=metadata.shortname, na_values=na_values)
    tables = DarwinCoreTables(
        taxon=build_taxon(table, metadata, report),
        distribution=build_distribution(table, locations, report),
        species_profile=build_species_profile(table),
        description=build_description(table),
        report=report,
    )

    if report.warnings:
        unmapped = sorted(
            {w.location or "<empty>" for w in report.warnings if hasattr(w, "location")}
        )
        logger.warning(
            "%d row(s) with unmapped locations: %s", len(report.warnings), ", ".join(unmapped)
        )
    logger.info(
        "Mapped %d rows: %d taxa, %d distributions, %d species profiles, %d descriptions "
        "(%d errors, %d warnings)",
        len(rows),
        len(tables.taxon),
        len(tables.distribution),
        len(tables.species_profile),
        len(tables.description),
        len(report.errors),
        len(report.warnings),
    )

    if strict and report.has_errors:
        raise MappingError(report)
    return tables
