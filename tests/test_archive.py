"""Tests for meta.xml generation and Darwin Core Archive bundling."""

import json
import zipfile
from xml.etree import ElementTree as ET

import pytest

from dwc import map_to_darwin_core
from dwc.archive import build_manifest, build_meta_xml, create_archive
from dwc.schema import term_uri
from io_utils.write import write_dwc_tables

NS = {"dwca": "http://rs.tdwg.org/dwc/text/"}


@pytest.fixture
def dwc_dir(tmp_path, checklist_rows):
    write_dwc_tables(tmp_path, map_to_darwin_core(checklist_rows))
    return tmp_path


class TestTermUri:
    def test_namespaces(self):
        assert term_uri("taxonID") == "http://rs.tdwg.org/dwc/terms/taxonID"
        assert term_uri("license") == "http://purl.org/dc/terms/license"
        assert term_uri("isMarine") == "http://rs.gbif.org/terms/1.0/isMarine"
        assert term_uri("description") == "http://purl.org/dc/terms/description"


class TestMetaXml:
    """Tests for the archive descriptor."""

    def test_core_and_extensions(self, tmp_path):
        meta_path = build_meta_xml(tmp_path)

        root = ET.parse(meta_path).getroot()
        core = root.find("dwca:core", NS)
        extensions = root.findall("dwca:extension", NS)

        assert core.get("rowType") == "http://rs.tdwg.org/dwc/terms/Taxon"
        assert core.find("dwca:files/dwca:location", NS).text == "taxon.csv"
        assert core.find("dwca:id", NS).get("index") == "7"
        assert [e.find("dwca:files/dwca:location", NS).text for e in extensions] == [
            "distribution.csv",
            "speciesprofile.csv",
            "description.csv",
        ]
        assert [e.get("rowType") for e in extensions] == [
            "http://rs.gbif.org/terms/1.0/Distribution",
            "http://rs.gbif.org/terms/1.0/SpeciesProfile",
            "http://rs.gbif.org/terms/1.0/Description",
        ]
        for extension in extensions:
            assert extension.find("dwca:coreid", NS).get("index") == "0"

    def test_fields_follow_column_order(self, tmp_path):
        root = ET.parse(build_meta_xml(tmp_path)).getroot()
        description = root.findall("dwca:extension", NS)[2]

        terms = [f.get("term") for f in description.findall("dwca:field", NS)]
        assert terms == [
            "http://rs.tdwg.org/dwc/terms/taxonID",
            "http://purl.org/dc/terms/description",
            "http://purl.org/dc/terms/type",
            "http://purl.org/dc/terms/language",
        ]


class TestCreateArchive:
    """Tests for manifest and ZIP bundle creation."""

    def test_manifest_version(self):
        manifest = build_manifest({"source": "checklist.csv"}, version="1.2.0", include_git_info=False)

        assert manifest["version"] == "1.2.0"
        assert manifest["filters"] == {"source": "checklist.csv"}
        assert "git_commit" not in manifest

    def test_uncompressed_returns_meta(self, dwc_dir):
        path = create_archive(dwc_dir)

        assert path == dwc_dir / "meta.xml"
        assert json.loads((dwc_dir / "manifest.json").read_text())["export_type"] == (
            "darwin_core_archive"
        )

    def test_zip_bundle(self, dwc_dir):
        path = create_archive(dwc_dir, compress=True, version="1.0.0")

        assert path.name == "dwca_v1.0.0.zip"
        with zipfile.ZipFile(path) as zf:
            assert sorted(zf.namelist()) == [
                "description.csv",
                "distribution.csv",
                "manifest.json",
                "meta.xml",
                "speciesprofile.csv",
                "taxon.csv",
            ]

    def test_bad_version(self, dwc_dir):
        with pytest.raises(ValueError, match="semantic versioning"):
            create_archive(dwc_dir, compress=True, version="v1")
