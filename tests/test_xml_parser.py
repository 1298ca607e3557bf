"""
Test Group: XML Import

Reading a DPFO typ B return back into the form aggregate: fallbacks for
unusable input, the earlier-year rule, and reconstruction of the sections
the return only carries as totals.
"""

from datetime import date
from decimal import Decimal

import pytest

from dpfo.domain.enums import DividendCurrency, ParentChoice
from dpfo.domain.form import default_form
from dpfo.engine.calculation_engine import calculate_tax
from dpfo.xmlform.mapper import to_xml_string
from dpfo.xmlform.parser import from_document, parse_personal_info

D = Decimal


def return_xml(body: str = "", year: str = "2025", dic: str = "1234567890") -> str:
    return (
        "<?xml version=\"1.0\" encoding=\"utf-8\"?>"
        "<dokument><hlavicka>"
        f"<dic>{dic}</dic><priezvisko>Novák</priezvisko><meno>Ján</meno>"
        "<adresaTrvPobytu><ulica>Hlavná</ulica><cislo>12</cislo><psc>81101</psc><obec>Bratislava</obec></adresaTrvPobytu>"
        f"<zdanovacieObdobie><rok>{year}</rok></zdanovacieObdobie>"
        f"</hlavicka><telo>{body}</telo></dokument>"
    )


@pytest.fixture
def full_xml(full_form):
    return to_xml_string(full_form, calculate_tax(full_form), declaration_date=date(2026, 3, 15))


class TestUnusableInput:

    @pytest.mark.parametrize("text", ["not xml at all", "<dokument><hlavicka>", "<foo><dic>1</dic></foo>"])
    def test_falls_back_to_defaults(self, text):
        assert from_document(text).model_dump() == default_form().model_dump()

    def test_missing_tax_id(self):
        xml = return_xml("<r36>1000.00</r36>", dic="")
        assert from_document(xml).model_dump() == default_form().model_dump()

    def test_personal_info_only_needs_header(self):
        info = parse_personal_info(return_xml())
        assert info.tax_id == "1234567890"
        assert info.municipality == "Bratislava"
        assert info.state == "Slovenská republika"
        assert parse_personal_info(return_xml(dic="")) is None
        assert parse_personal_info("<broken") is None

    def test_bytes_and_namespaces(self):
        xml = return_xml("<r36>1000.00</r36>").replace("<dokument>", '<dokument xmlns="urn:example:dpfo">')
        form = from_document(xml.encode("utf-8"))
        assert form.personal_info.tax_id == "1234567890"
        assert form.employment.r36 == D("1000.00")

    def test_entities_are_not_expanded(self):
        xml = (
            '<?xml version="1.0"?><!DOCTYPE dokument [<!ENTITY name "Injected">]>'
            "<dokument><hlavicka><dic>1234567890</dic><meno>&name;</meno>"
            "<zdanovacieObdobie><rok>2025</rok></zdanovacieObdobie></hlavicka><telo/></dokument>"
        )
        assert "Injected" not in from_document(xml).personal_info.first_name


class TestEarlierYear:

    def test_only_identity_and_allocations(self, full_form, full_xml):
        form = from_document(full_xml.replace("<rok>2025</rok>", "<rok>2024</rok>"))
        assert form.personal_info.model_dump() == full_form.personal_info.model_dump()
        assert form.two_percent.model_dump() == full_form.two_percent.model_dump()
        assert form.parent_allocation.model_dump() == full_form.parent_allocation.model_dump()

        defaults = default_form()
        for section in ("employment", "dividends", "mutual_funds", "stock_sales", "mortgage", "spouse", "dds", "child_bonus"):
            assert getattr(form, section).model_dump() == getattr(defaults, section).model_dump(), section

    def test_missing_year_counts_as_earlier(self):
        xml = return_xml("<r36>1000.00</r36>").replace("<rok>2025</rok>", "<rok></rok>")
        assert from_document(xml).employment.r36 == D("0")


class TestEmployment:

    def test_advances_alone_enable_employment(self):
        form = from_document(return_xml("<r36/><r37/><r131>120.00</r131>"))
        assert form.employment.enabled is True
        assert form.employment.r131 == D("120.00")

    def test_zero_advances_do_not(self):
        form = from_document(return_xml("<r36/><r37/><r131>0.00</r131>"))
        assert form.employment.enabled is False


class TestDividends:

    def test_withholding_spread_by_income_share(self, full_xml):
        dividends = from_document(full_xml).dividends
        assert dividends.enabled is True
        usa, germany = dividends.entries
        assert (usa.country, usa.currency, usa.country_name) == ("840", DividendCurrency.USD, "USA")
        assert usa.amount_eur == D("300.00")
        assert usa.amount_original == D("339.00")
        assert usa.withheld_tax_eur == D("53.54")
        assert usa.withheld_tax_original == D("60.50")
        assert (germany.country, germany.currency) == ("276", DividendCurrency.EUR)
        assert germany.amount_original == germany.amount_eur == D("100.00")
        assert germany.withheld_tax_eur == D("17.85")

    def test_single_row_without_total_takes_all_withholding(self):
        body = (
            "<osobitneZaznamy><uvadza>1</uvadza><udajeOprijmoch><kodStatu>203</kodStatu>"
            "<druhPrimuPar>51e</druhPrimuPar><prijmy>100.00</prijmy></udajeOprijmoch></osobitneZaznamy>"
            "<pril2PodielyNaZisku><pr14>15.00</pr14></pril2PodielyNaZisku>"
        )
        (entry,) = from_document(return_xml(body)).dividends.entries
        assert entry.currency == DividendCurrency.CZK
        assert entry.withheld_tax_eur == D("15.00")
        assert entry.amount_original == D("2521.00")

    def test_other_income_and_empty_rows_skipped(self):
        body = (
            "<osobitneZaznamy>"
            "<udajeOprijmoch><kodStatu>840</kodStatu><druhPrimuPar>5</druhPrimuPar><prijmy>50.00</prijmy></udajeOprijmoch>"
            "<udajeOprijmoch><kodStatu/><druhPrimuPar/><prijmy/></udajeOprijmoch>"
            "<udajeOprijmoch><kodStatu>528</kodStatu><druhPrimuPar/><prijmy>20.00</prijmy></udajeOprijmoch>"
            "</osobitneZaznamy>"
        )
        entries = from_document(return_xml(body)).dividends.entries
        assert [(e.country, e.amount_eur) for e in entries] == [("528", D("20.00"))]

    def test_no_rows_keeps_section_disabled(self):
        assert from_document(return_xml("<r36>100</r36>")).dividends.enabled is False


class TestOtherSections:

    def test_placeholder_children_skipped(self, full_xml):
        children = from_document(full_xml).child_bonus.children
        assert [c.birth_number for c in children] == ["1501010000", "1057150000"]
        assert children[0].whole_year is True
        assert children[1].whole_year is False
        assert children[1].months == [True] * 6 + [False] * 6

    def test_employer_bonus_without_children(self):
        child_bonus = from_document(return_xml("<r119>300.00</r119>")).child_bonus
        assert child_bonus.enabled is False
        assert child_bonus.bonus_paid_by_employer == D("300.00")

    def test_mortgage_dates(self, full_xml):
        mortgage = from_document(full_xml).mortgage
        assert mortgage.enabled is True
        assert mortgage.contract_date == date(2024, 2, 15)
        assert mortgage.interest_start_date == date(2024, 3, 1)
        assert mortgage.confirm_4_years is False

    def test_funds_collapse_into_one_entry(self):
        form = from_document(return_xml(
            "<tabulka2><t2r7><s1>2500.00</s1><s2>1800.00</s2></t2r7></tabulka2>"))
        (entry,) = form.mutual_funds.entries
        assert (entry.sale_amount, entry.purchase_amount) == (D("2500.00"), D("1800.00"))

    def test_stock_sales_from_summary_rows(self):
        (entry,) = from_document(return_xml("<r69>900.00</r69><r70>400.00</r70>")).stock_sales.entries
        assert (entry.sale_amount, entry.purchase_amount) == (D("900.00"), D("400.00"))

    def test_dds_from_r75(self):
        assert from_document(return_xml("<r75>0.00</r75>")).dds.enabled is False
        dds = from_document(return_xml("<r75>120.00</r75>")).dds
        assert dds.enabled is True
        assert dds.contributions == D("120.00")

    def test_single_parent(self):
        body = (
            "<r153><neuplatnujemPar50aa>0</neuplatnujemPar50aa>"
            "<rodicA><rodneCislo>5501150006</rodneCislo><priezvisko>Novák</priezvisko><meno>Jozef</meno></rodicA>"
            "<rodicB><rodneCislo/><priezvisko/><meno/></rodicB></r153>"
        )
        parents = from_document(return_xml(body)).parent_allocation
        assert parents.choice == ParentChoice.ONE
        assert parents.parent1.first_name == "Jozef"

    def test_declined_parent_allocation(self):
        body = "<r153><neuplatnujemPar50aa>1</neuplatnujemPar50aa><rodicA><meno>Jozef</meno></rodicA></r153>"
        assert from_document(return_xml(body)).parent_allocation.choice == ParentChoice.NONE
