"""End-to-end tests for the command line interface."""

import json
import logging
import zipfile

import pytest
from typer.testing import CliRunner

from cli import app, load_config
from conftest import HEADER
from dwc import map_to_darwin_core
from io_utils.write import write_dwc_tables

runner = CliRunner()


def _remove_root_handlers():
    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    _remove_root_handlers()


class TestLoadConfig:
    def test_defaults(self):
        cfg = load_config(None)

        assert cfg["dataset"]["shortname"] == "alien-herpetofauna-belgium"
        assert cfg["mapping"]["na_values"] == ["", "NA"]

    def test_user_file_merged(self, tmp_path):
        user = tmp_path / "user.toml"
        user.write_text('[dataset]\nrights_holder = "INBO"\n')

        cfg = load_config(user)

        assert cfg["dataset"]["rights_holder"] == "INBO"
        assert cfg["dataset"]["language"] == "en"


class TestMapCommand:
    def test_writes_tables_report_and_manifest(self, tmp_path, checklist_csv):
        output = tmp_path / "out"

        result = runner.invoke(app, ["map", "-i", str(checklist_csv), "-o", str(output)])

        assert result.exit_code == 0, result.output
        for name in ("taxon.csv", "distribution.csv", "speciesprofile.csv", "description.csv"):
            assert (output / name).exists()
        report = json.loads((output / "report.json").read_text())
        assert report["warning_count"] == 1
        manifest = json.loads((output / "manifest.json").read_text())
        assert manifest["input_rows"] == 4
        assert manifest["tables"]["distribution.csv"] == 8

    def test_config_overrides(self, tmp_path, checklist_csv):
        config = tmp_path / "config.toml"
        config.write_text(
            '[dataset]\nshortname = "herps"\n\n[locations]\nLimburg = ["ISO_3166-2:BE-VLI", "Limburg"]\n'
        )
        output = tmp_path / "out"

        result = runner.invoke(
            app, ["map", "-i", str(checklist_csv), "-o", str(output), "-c", str(config)]
        )

        assert result.exit_code == 0, result.output
        assert "herps:taxon:0a13c7" in (output / "taxon.csv").read_text()
        assert "ISO_3166-2:BE-VLI" in (output / "distribution.csv").read_text()
        assert json.loads((output / "report.json").read_text())["warning_count"] == 0

    def test_strict_failure(self, tmp_path):
        source = tmp_path / "checklist.csv"
        source.write_text(",".join(HEADER) + "\n" + ",".join([""] * len(HEADER)) + "\n")
        output = tmp_path / "out"

        result = runner.invoke(app, ["map", "-i", str(source), "-o", str(output), "--strict"])

        assert result.exit_code == 1
        assert not (output / "taxon.csv").exists()
        report = json.loads((output / "report.json").read_text())
        assert report["errors"][0]["code"] == "missing_field"

    def test_no_strict_overrides_config(self, tmp_path):
        """``--no-strict`` wins over ``[mapping].strict = true``."""
        config = tmp_path / "config.toml"
        config.write_text("[mapping]\nstrict = true\n")
        source = tmp_path / "checklist.csv"
        source.write_text(",".join(HEADER) + "\n" + ",".join([""] * len(HEADER)) + "\n")
        output = tmp_path / "out"

        strict = runner.invoke(app, ["map", "-i", str(source), "-o", str(output), "-c", str(config)])
        _remove_root_handlers()
        relaxed = runner.invoke(
            app, ["map", "-i", str(source), "-o", str(output), "-c", str(config), "--no-strict"]
        )

        assert strict.exit_code == 1
        assert relaxed.exit_code == 0, relaxed.output
        assert (output / "taxon.csv").exists()

    def test_malformed_config(self, tmp_path, checklist_csv):
        config = tmp_path / "config.toml"
        config.write_text("[dataset\nshortname = \n")

        result = runner.invoke(
            app, ["map", "-i", str(checklist_csv), "-o", str(tmp_path / "out"), "-c", str(config)]
        )

        assert result.exit_code == 1
        assert "Invalid config file" in result.output

    def test_invalid_dataset_values(self, tmp_path, checklist_csv):
        config = tmp_path / "config.toml"
        config.write_text("[dataset]\nshortname = 5\n")

        result = runner.invoke(
            app, ["map", "-i", str(checklist_csv), "-o", str(tmp_path / "out"), "-c", str(config)]
        )

        assert result.exit_code == 1
        assert "Invalid [dataset] configuration" in result.output

    def test_missing_input(self, tmp_path):
        result = runner.invoke(
            app, ["map", "-i", str(tmp_path / "nope.csv"), "-o", str(tmp_path / "out")]
        )

        assert result.exit_code == 1

    def test_no_input_and_no_url(self, tmp_path):
        result = runner.invoke(app, ["map", "-o", str(tmp_path / "out")])

        assert result.exit_code == 1


class TestArchiveCommand:
    def test_bundle(self, tmp_path, checklist_rows):
        output = tmp_path / "out"
        write_dwc_tables(output, map_to_darwin_core(checklist_rows))

        result = runner.invoke(app, ["archive", "-o", str(output), "-v", "2.1.0"])

        assert result.exit_code == 0, result.output
        assert (output / "dwca_v2.1.0.zip").exists()

    def test_map_then_archive_keeps_run_record(self, tmp_path, checklist_csv):
        """The bundled manifest still carries the mapping run's counts."""
        output = tmp_path / "out"
        mapped = runner.invoke(app, ["map", "-i", str(checklist_csv), "-o", str(output)])
        _remove_root_handlers()

        result = runner.invoke(app, ["archive", "-o", str(output), "-v", "1.0.0"])

        assert mapped.exit_code == 0, mapped.output
        assert result.exit_code == 0, result.output
        with zipfile.ZipFile(output / "dwca_v1.0.0.zip") as zf:
            manifest = json.loads(zf.read("manifest.json"))
        assert manifest["input_rows"] == 4
        assert manifest["tables"]["taxon.csv"] == 3
        assert manifest["warnings"] == 1
        assert manifest["filters"]["source"] == str(checklist_csv)
        assert manifest["version"] == "1.0.0"

    def test_malformed_config(self, tmp_path):
        config = tmp_path / "config.toml"
        config.write_text("[export\n")

        result = runner.invoke(app, ["archive", "-o", str(tmp_path), "-c", str(config)])

        assert result.exit_code == 1

    def test_invalid_version(self, tmp_path):
        result = runner.invoke(app, ["archive", "-o", str(tmp_path), "-v", "latest"])

        assert result.exit_code == 1
