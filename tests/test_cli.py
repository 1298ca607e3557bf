"""
Test Group: Command Line

Argument defaults and end-to-end runs of main_application against files in
tmp_path.
"""

import json
import os
from decimal import Decimal

import pytest

import dpfo.config as config
import dpfo.main as main_module
from dpfo.cli import parse_arguments
from dpfo.main import main_application
from dpfo.parsers.form_loader import save_form
from dpfo.xmlform.mapper import XML_DECLARATION
from tests.support.forms import build_form
from tests.support.mock_providers import MockAnnualRateProvider


@pytest.fixture
def saved_full_form(full_form, tmp_path):
    path = str(tmp_path / "form.json")
    save_form(full_form, path)
    return path


class TestParseArguments:

    def test_defaults(self):
        args = parse_arguments([])
        assert args.form == config.FORM_FILE_PATH
        assert args.import_xml is None
        assert args.export_xml is None
        assert args.report is False
        assert args.log_level == config.LOG_LEVEL

    def test_export_without_path_uses_default(self):
        assert parse_arguments(["--export-xml"]).export_xml == config.XML_OUTPUT_FILE_PATH

    def test_import_replaces_default_form(self):
        args = parse_arguments(["--import-xml", "old.xml", "--log-level", "debug"])
        assert args.form is None
        assert args.import_xml == "old.xml"
        assert args.log_level == "DEBUG"


class TestMainApplication:

    def test_export_xml(self, saved_full_form, tmp_path):
        out = str(tmp_path / "output" / "dpfo.xml")
        main_application(["--form", saved_full_form, "--export-xml", out])
        with open(out, encoding="utf-8") as f:
            text = f.read()
        assert text.startswith(XML_DECLARATION)
        assert "<r136>2334.98</r136>" in text

    def test_export_requires_identity(self, tmp_path):
        path = str(tmp_path / "form.json")
        save_form(build_form(personal_info={"dic": "12345"}), path)
        out = str(tmp_path / "dpfo.xml")
        with pytest.raises(SystemExit) as exc_info:
            main_application(["--form", path, "--export-xml", out])
        assert exc_info.value.code == 1
        assert not os.path.exists(out)

    def test_missing_form_file_exits(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main_application(["--form", str(tmp_path / "nope.json")])
        assert exc_info.value.code == 1

    def test_import_report_and_save(self, saved_full_form, tmp_path, capsys):
        xml_path = str(tmp_path / "dpfo.xml")
        main_application(["--form", saved_full_form, "--export-xml", xml_path])
        saved = str(tmp_path / "imported.json")
        main_application(["--import-xml", xml_path, "--report", "--save-form", saved])

        assert "Daňový preplatok (r.136)" in capsys.readouterr().out
        with open(saved, encoding="utf-8") as f:
            data = json.load(f)
        assert data["personalInfo"]["dic"] == "1234567890"
        assert data["schemaVersion"] == 2

    def test_pdf_output(self, saved_full_form, tmp_path):
        pdf = str(tmp_path / "summary.pdf")
        main_application(["--form", saved_full_form, "--pdf-output-file", pdf])
        assert os.path.getsize(pdf) > 0

    def test_fetch_rates_uses_provider(self, saved_full_form, monkeypatch, tmp_path):
        provider = MockAnnualRateProvider({"USD": Decimal("1.10"), "CZK": Decimal("25.00")})
        monkeypatch.setattr(main_module, "ECBAnnualRateProvider", lambda: provider)
        saved = str(tmp_path / "refreshed.json")
        main_application(["--form", saved_full_form, "--fetch-ecb-rates", "--save-form", saved])

        assert provider.calls == [(config.TAX_YEAR, "USD"), (config.TAX_YEAR, "CZK")]
        with open(saved, encoding="utf-8") as f:
            assert json.load(f)["dividends"]["ecbRate"] == "1.10"

    def test_import_honours_declared_encoding(self, tmp_path):
        xml_path = tmp_path / "latin1.xml"
        xml_path.write_bytes(
            '<?xml version="1.0" encoding="iso-8859-1"?><dokument><hlavicka><dic>1234567890</dic>'
            "<priezvisko>Novák</priezvisko><zdanovacieObdobie><rok>2025</rok></zdanovacieObdobie>"
            "</hlavicka><telo/></dokument>".encode("iso-8859-1")
        )
        saved = str(tmp_path / "imported.json")
        main_application(["--import-xml", str(xml_path), "--save-form", saved])
        with open(saved, encoding="utf-8") as f:
            assert json.load(f)["personalInfo"]["priezvisko"] == "Novák"

    def test_import_of_undecodable_file_falls_back_to_defaults(self, tmp_path):
        xml_path = tmp_path / "broken.xml"
        xml_path.write_bytes(b"<dokument><hlavicka><dic>12\xff\xfe</dic></hlavicka></dokument>")
        saved = str(tmp_path / "imported.json")
        main_application(["--import-xml", str(xml_path), "--save-form", saved])
        with open(saved, encoding="utf-8") as f:
            assert json.load(f)["personalInfo"]["dic"] == ""
