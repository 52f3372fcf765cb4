from .schema import (
    DatasetMetadata,
    DescriptionRecord,
    DistributionRecord,
    SpeciesProfileRecord,
    TaxonRecord,
    TABLE_RECORDS,
    term_uri,
)
from .errors import (
    ChecklistReadError,
    IncompleteTaxonError,
    MappingError,
    MappingReport,
    MissingFieldError,
    UnmappedLocationWarning,
)
from .normalize import (
    build_event_date,
    build_taxon_id,
    clean_column_names,
    load_locations,
    normalize_rows,
    split_delimited,
)
from .mapper import (
    DarwinCoreTables,
    build_description,
    build_distribution,
    build_species_profile,
    build_taxon,
    map_to_darwin_core,
)
from .validators import validate_location, validate_taxon
from .archive import build_meta_xml, create_archive

__all__ = [
    "DatasetMetadata",
    "TaxonRecord",
    "DistributionRecord",
    "SpeciesProfileRecord",
    "DescriptionRecord",
    "TABLE_RECORDS",
    "term_uri",
    "ChecklistReadError",
    "IncompleteTaxonError",
    "MappingError",
    "MappingReport",
    "MissingFieldError",
    "UnmappedLocationWarning",
    "build_event_date",
    "build_taxon_id",
    "clean_column_names",
    "load_locations",
    "normalize_rows",
    "split_delimited",
    "DarwinCoreTables",
    "build_taxon",
    "build_distribution",
    "build_species_profile",
    "build_description",
    "map_to_darwin_core",
    "validate_location",
    "validate_taxon",
    "build_meta_xml",
    "create_archive",
]
