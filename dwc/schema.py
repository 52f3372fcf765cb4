from __future__ import annotations

from typing import ClassVar, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

DWC_NS = "http://rs.tdwg.org/dwc/terms/"
DCTERMS_NS = "http://purl.org/dc/terms/"
GBIF_NS = "http://rs.gbif.org/terms/1.0/"

# Terms outside the Darwin Core namespace; everything else resolves to DWC_NS.
_TERM_NAMESPACES: Dict[str, str] = {
    "language": DCTERMS_NS,
    "license": DCTERMS_NS,
    "rightsHolder": DCTERMS_NS,
    "accessRights": DCTERMS_NS,
    "source": DCTERMS_NS,
    "description": DCTERMS_NS,
    "type": DCTERMS_NS,
    "isMarine": GBIF_NS,
    "isFreshwater": GBIF_NS,
    "isTerrestrial": GBIF_NS,
}


def term_uri(term: str) -> str:
    """Return the full URI for an output column name."""

    return _TERM_NAMESPACES.get(term, DWC_NS) + term


class DatasetMetadata(BaseModel):
    """Dataset-wide constants attached to every taxon record.

    Values come from the ``[dataset]`` section of the configuration.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    shortname: str = "alien-herpetofauna-belgium"
    language: str = "en"
    license: str = "http://creativecommons.org/publicdomain/zero/1.0/"
    rights_holder: str = "Natuurpunt"
    access_rights: str = "https://www.inbo.be/en/norms-for-data-use"
    dataset_id: str = "https://doi.org/10.15468/pnxu4c"
    institution_code: str = "Natuurpunt"
    dataset_name: str = "Checklist of alien herpetofauna of Belgium"


class DwcTableRecord(BaseModel):
    """Base class for one row of an output table.

    ``COLUMNS`` fixes the column order used when the table is written.  Field
    names that clash with Python keywords carry the Darwin Core term as an
    alias.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    COLUMNS: ClassVar[List[str]] = []
    ROW_TYPE: ClassVar[str] = ""
    FILENAME: ClassVar[str] = ""

    def to_dict(self) -> Dict[str, str]:
        """Return the row keyed by column name with ``None`` as empty strings."""

        data = self.model_dump(by_alias=True)
        return {column: data[column] or "" for column in self.COLUMNS}


class TaxonRecord(DwcTableRecord):
    COLUMNS: ClassVar[List[str]] = [
        "language",
        "license",
        "rightsHolder",
        "accessRights",
        "datasetID",
        "institutionCode",
        "datasetName",
        "taxonID",
        "scientificName",
        "kingdom",
        "phylum",
        "class",
        "order",
        "family",
        "genus",
        "taxonRank",
        "nomenclaturalCode",
    ]
    ROW_TYPE: ClassVar[str] = DWC_NS + "Taxon"
    FILENAME: ClassVar[str] = "taxon.csv"

    language: str
    license: str
    rightsHolder: str
    accessRights: str
    datasetID: str
    institutionCode: str
    datasetName: str
    taxonID: str
    scientificName: str
    kingdom: str
    phylum: Optional[str] = None
    class_: Optional[str] = Field(default=None, alias="class")
    order: Optional[str] = None
    family: Optional[str] = None
    genus: Optional[str] = None
    taxonRank: Optional[str] = None
    nomenclaturalCode: Optional[str] = None


class DistributionRecord(DwcTableRecord):
    COLUMNS: ClassVar[List[str]] = [
        "taxonID",
        "locationID",
        "locality",
        "countryCode",
        "occurrenceStatus",
        "establishmentMeans",
        "degreeOfEstablishment",
        "pathway",
        "eventDate",
        "source",
        "occurrenceRemarks",
    ]
    ROW_TYPE: ClassVar[str] = GBIF_NS + "Distribution"
    FILENAME: ClassVar[str] = "distribution.csv"

    taxonID: str
    locationID: Optional[str] = None
    locality: Optional[str] = None
    countryCode: Optional[str] = None
    occurrenceStatus: Optional[str] = None
    establishmentMeans: Optional[str] = None
    degreeOfEstablishment: Optional[str] = None
    pathway: Optional[str] = None
    eventDate: Optional[str] = None
    source: Optional[str] = None
    occurrenceRemarks: Optional[str] = None


class SpeciesProfileRecord(DwcTableRecord):
    COLUMNS: ClassVar[List[str]] = ["taxonID", "isMarine", "isFreshwater", "isTerrestrial"]
    ROW_TYPE: ClassVar[str] = GBIF_NS + "SpeciesProfile"
    FILENAME: ClassVar[str] = "speciesprofile.csv"

    taxonID: str
    isMarine: Optional[str] = None
    isFreshwater: Optional[str] = None
    isTerrestrial: Optional[str] = None


class DescriptionRecord(DwcTableRecord):
    COLUMNS: ClassVar[List[str]] = ["taxonID", "description", "type", "language"]
    ROW_TYPE: ClassVar[str] = GBIF_NS + "Description"
    FILENAME: ClassVar[str] = "description.csv"

    taxonID: str
    description: str
    type: str = "native range"
    language: str = "en"


# Core first, then the extensions in the order they are written.
TABLE_RECORDS: List[type[DwcTableRecord]] = [
    TaxonRecord,
    DistributionRecord,
    SpeciesProfileRecord,
    DescriptionRecord,
]
