"""Shared fixtures: a small checklist export in the spreadsheet's own headers."""

import csv

import pytest

HEADER = [
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
    "introduction_pathway_1",
    "introduction_pathway_2",
    "introduction_pathway_3",
    "date_first_observation",
    "date_last_observation",
    "source",
    "occurrence_remarks",
    "terrestrial",
    "marine",
    "freshwater",
    "native_range",
]


def make_row(**values):
    """Return a checklist row with every column present (empty by default)."""
    row = {column: "" for column in HEADER}
    row.update(values)
    return row


@pytest.fixture
def trachemys_rows():
    """Trachemys scripta recorded in two regions, with three pathways."""
    common = dict(
        taxon_id_hash="b4f6a1",
        scientific_name="Trachemys scripta (Thunberg in Schoepff, 1792)",
        kingdom="Animalia",
        phylum="Chordata",
        **{"class": "Reptilia", "order": "Testudines"},
        family="Emydidae",
        genus="Trachemys",
        taxon_rank="species",
        nomenclatural_code="ICZN",
        country_code="BE",
        occurrence_status="present",
        establishment_means="introduced",
        degree_of_establishment="established",
        introduction_pathway_1="pet",
        introduction_pathway_2="escape",
        introduction_pathway_3="release",
        date_first_observation="1985",
        source="Jooris 2012",
        terrestrial="TRUE",
        freshwater="TRUE",
        marine="FALSE",
        native_range="North America | Central America",
    )
    return [
        make_row(location="Flanders", **common),
        make_row(location="Wallonia", **common),
    ]


@pytest.fixture
def checklist_rows(trachemys_rows):
    """Three taxa: one fully recorded, one sparse, one with an unknown region."""
    return trachemys_rows + [
        make_row(
            taxon_id_hash="0a13c7",
            scientific_name="Lithobates catesbeianus (Shaw, 1802)",
            kingdom="Animalia",
            phylum="Chordata",
            **{"class": "Amphibia", "order": "Anura"},
            family="Ranidae",
            genus="Lithobates",
            taxon_rank="species",
            nomenclatural_code="ICZN",
            location="Brussels",
            country_code="BE",
            occurrence_status="present",
            establishment_means="introduced",
            date_first_observation="1996",
            date_last_observation="2017",
            freshwater="TRUE",
            native_range="North America",
        ),
        make_row(
            taxon_id_hash="f9e2d0",
            scientific_name="Podarcis muralis (Laurenti, 1768)",
            kingdom="Animalia",
            location="Limburg",
            country_code="BE",
            introduction_pathway_2="contaminant",
            date_last_observation="2005",
        ),
    ]


@pytest.fixture
def checklist_csv(tmp_path, checklist_rows):
    """The checklist written as a CSV export with a UTF-8 BOM."""
    path = tmp_path / "checklist.csv"
    with path.open("w", newline="", encoding="utf-8-sig") as f:
        writer = csv.DictWriter(f, fieldnames=HEADER)
        writer.writeheader()
        writer.writerows(checklist_rows)
    return path
