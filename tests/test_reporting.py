"""
Test Group: Reporting

Slovak amount formatting, the rows chosen for summaries, the console report
and the PDF summary.
"""

import os
from decimal import Decimal

import pytest

from dpfo.engine.calculation_engine import calculate_tax
from dpfo.processing.form_warnings import get_validation_warnings
from dpfo.reporting.console_reporter import generate_console_tax_report
from dpfo.reporting.pdf_generator import PdfReportGenerator
from dpfo.reporting.reporting_utils import NBSP, format_amount_sk, report_rows
from tests.support.forms import build_form

D = Decimal


class TestFormatAmountSk:

    @pytest.mark.parametrize("value, expected", [
        (D("1234567.891"), f"1{NBSP}234{NBSP}567,89"),
        ("2334.98", f"2{NBSP}334,98"),
        (D("-1500"), f"-1{NBSP}500,00"),
        ("0.004", "0,00"),
        ("-0.001", "0,00"),
        ("", "0,00"),
        (None, "0,00"),
        ("999.995", f"1{NBSP}000,00"),
    ])
    def test_format(self, value, expected):
        assert format_amount_sk(value) == expected


class TestReportRows:

    def test_employee_only(self, employee_form):
        rows = report_rows(employee_form, calculate_tax(employee_form))
        assert [row.row for row in rows] == [
            "r36", "r37", "r38", "r72", "r73", "r77", "r78", "r80", "r81", "r116", "r131", "r135", "r136",
        ]
        assert rows[2].value == "17500.00"

    def test_full_form_sections(self, full_form):
        rows = report_rows(full_form, calculate_tax(full_form))
        sections = list(dict.fromkeys(row.section for row in rows))
        assert sections == [
            "Zamestnanie (§5)", "Podielové fondy (§7)", "Cenné papiere (§8)", "Dividendy (príloha č.2)",
            "Nezdaniteľné časti", "Daň", "Daňový bonus na deti", "Bonus na úroky", "Vysporiadanie",
            "Poukázanie dane",
        ]
        by_row = {row.row: row.value for row in rows}
        assert by_row["r74"] == "4260.61"
        assert by_row["r75"] == "150.00"
        assert by_row["parent_alloc_per_parent"] == "13.30"

    def test_agreement_income_only_when_present(self):
        form = build_form(employment={"r36": "1000", "r36a": "300"})
        assert "r36a" in [row.row for row in report_rows(form, calculate_tax(form))]


class TestConsoleReport:

    def test_refund_summary(self, full_form, capsys):
        generate_console_tax_report(full_form, calculate_tax(full_form), 2025)
        out = capsys.readouterr().out
        assert "DPFO typ B za rok 2025" in out
        assert "Ing. Ján Novák" in out
        assert f"Daňový preplatok (r.136): 2{NBSP}334,98 EUR" in out
        assert "Upozornenia" not in out

    def test_warnings_listed(self, capsys):
        form = build_form(personal_info={})
        generate_console_tax_report(form, calculate_tax(form), 2025, get_validation_warnings(form))
        out = capsys.readouterr().out
        assert "[krok 1] Osobné údaje: DIČ" in out

    def test_nothing_to_pay(self, capsys):
        form = build_form(employment={"enabled": False})
        generate_console_tax_report(form, calculate_tax(form), 2025)
        assert "Nič na úhradu ani na vrátenie." in capsys.readouterr().out


class TestPdfReport:

    def test_writes_pdf(self, full_form, tmp_path):
        path = str(tmp_path / "summary.pdf")
        PdfReportGenerator(full_form, calculate_tax(full_form), 2025).generate(path)
        assert os.path.getsize(path) > 0
        with open(path, "rb") as f:
            assert f.read(5) == b"%PDF-"

    def test_with_warnings(self, tmp_path):
        form = build_form(personal_info={})
        path = str(tmp_path / "warnings.pdf")
        PdfReportGenerator(form, calculate_tax(form), 2025, get_validation_warnings(form)).generate(path)
        assert os.path.exists(path)

    def test_unwritable_path_raises(self, full_form, tmp_path):
        path = str(tmp_path / "missing-dir" / "summary.pdf")
        with pytest.raises(OSError):
            PdfReportGenerator(full_form, calculate_tax(full_form), 2025).generate(path)
