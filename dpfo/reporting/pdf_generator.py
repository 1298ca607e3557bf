# dpfo/reporting/pdf_generator.py
import logging
from datetime import datetime
from typing import Any, List, Optional

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_LEFT, TA_RIGHT
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from dpfo import __version__
from dpfo.domain.form import TaxFormData
from dpfo.domain.results import TaxCalculationResult
from dpfo.processing.form_warnings import ValidationWarning
from dpfo.reporting.reporting_utils import format_amount_sk, report_rows
from dpfo.utils.currency_converter import entry_amount_eur, entry_withheld_eur

logger = logging.getLogger(__name__)


class PdfReportGenerator:
    def __init__(self,
                 form: TaxFormData,
                 result: TaxCalculationResult,
                 tax_year: int,
                 warnings: Optional[List[ValidationWarning]] = None,
                 report_version: str = __version__):
        self.form = form
        self.result = result
        self.tax_year = tax_year
        self.warnings = warnings if warnings else []
        self.report_version = report_version

        self.styles = self._generate_styles()
        self.story: List[Any] = []

    def _generate_styles(self):
        styles = getSampleStyleSheet()

        styles.add(ParagraphStyle(name='H1', fontSize=16, leading=20, spaceAfter=10, alignment=TA_CENTER, fontName='Helvetica-Bold'))
        styles.add(ParagraphStyle(name='H2', fontSize=13, leading=17, spaceAfter=8, spaceBefore=12, fontName='Helvetica-Bold'))

        body_text_style = styles['BodyText']
        body_text_style.fontSize = 10
        body_text_style.leading = 12
        body_text_style.spaceAfter = 6
        body_text_style.fontName = 'Helvetica'

        styles.add(ParagraphStyle(name='Disclaimer', fontSize=8, leading=10, spaceAfter=12, alignment=TA_JUSTIFY, fontName='Helvetica'))
        styles.add(ParagraphStyle(name='TableHeader', alignment=TA_CENTER, fontSize=8, fontName='Helvetica-Bold', textColor=colors.black))
        styles.add(ParagraphStyle(name='TableCell', alignment=TA_LEFT, fontSize=8, fontName='Helvetica', textColor=colors.black))
        styles.add(ParagraphStyle(name='TableCellRight', alignment=TA_RIGHT, fontSize=8, fontName='Helvetica', textColor=colors.black))
        return styles

    def _create_styled_table(self, data: List[List[Any]], col_widths: Optional[List[float]] = None,
                             numeric_columns: Optional[List[int]] = None, repeatRows=1) -> Table:
        numeric_columns = numeric_columns or []
        styled_data = []
        for i, row_content in enumerate(data):
            styled_row = []
            for j, cell_content in enumerate(row_content):
                if i < repeatRows:
                    style_name = 'TableHeader'
                elif j in numeric_columns:
                    style_name = 'TableCellRight'
                else:
                    style_name = 'TableCell'
                styled_row.append(Paragraph(str(cell_content), self.styles[style_name]))
            styled_data.append(styled_row)

        tbl = Table(styled_data, colWidths=col_widths, repeatRows=repeatRows)
        ts_cmds = [
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('LEFTPADDING', (0, 0), (-1, -1), 3),
            ('RIGHTPADDING', (0, 0), (-1, -1), 3),
            ('TOPPADDING', (0, 0), (-1, -1), 2),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 2),
        ]
        if repeatRows > 0:
            ts_cmds.append(('BACKGROUND', (0, 0), (-1, repeatRows - 1), colors.lightgrey))
        tbl.setStyle(TableStyle(ts_cmds))
        return tbl

    def _add_title(self):
        info = self.form.personal_info
        name = " ".join(part for part in (info.title_before, info.first_name, info.surname, info.title_after) if part)
        self.story.append(Paragraph(f"Súhrn daňového priznania DPFO typ B za rok {self.tax_year}", self.styles['H1']))
        self.story.append(Spacer(1, 0.5 * cm))
        self.story.append(Paragraph(f"Daňovník: {name or '-'}", self.styles['BodyText']))
        self.story.append(Paragraph(f"DIČ: {info.tax_id or '-'}", self.styles['BodyText']))
        address = ", ".join(part for part in (f"{info.street} {info.house_number}".strip(), f"{info.postal_code} {info.municipality}".strip(), info.state) if part)
        self.story.append(Paragraph(f"Adresa: {address or '-'}", self.styles['BodyText']))
        self.story.append(Paragraph(f"Dátum vytvorenia: {datetime.now().strftime('%d.%m.%Y')}", self.styles['BodyText']))
        self.story.append(Paragraph(f"Verzia nástroja: {self.report_version}", self.styles['BodyText']))
        self.story.append(Spacer(1, 0.3 * cm))
        self.story.append(Paragraph(
            "Tento súhrn bol vytvorený automaticky z údajov formulára. Nie je daňovým poradenstvom; "
            "všetky sumy je potrebné pred podaním skontrolovať.", self.styles['Disclaimer']))

    def _add_rows_summary(self):
        self.story.append(Paragraph("Riadky priznania", self.styles['H2']))
        data = [["Oddiel", "Riadok", "Popis", "Suma (EUR)"]]
        for row in report_rows(self.form, self.result):
            data.append([row.section, row.row.replace("pril2_", "príl.2 "), row.label, format_amount_sk(row.value)])
        self.story.append(self._create_styled_table(data, col_widths=[3.5 * cm, 2 * cm, 7.5 * cm, 3 * cm], numeric_columns=[3]))

    def _add_dividend_details(self):
        dividends = self.form.dividends
        if not (dividends.enabled and dividends.entries):
            return
        self.story.append(Paragraph("Zahraničné dividendy", self.styles['H2']))
        data = [["Ticker", "Štát", "Mena", "Suma v mene", "Suma (EUR)", "Zrazená daň (EUR)"]]
        for entry in dividends.entries:
            data.append([
                entry.ticker or "-",
                f"{entry.country_name} ({entry.country})",
                entry.currency.value,
                format_amount_sk(entry.amount_original),
                format_amount_sk(entry_amount_eur(entry, dividends)),
                format_amount_sk(entry_withheld_eur(entry, dividends)),
            ])
        self.story.append(self._create_styled_table(data, numeric_columns=[3, 4, 5]))
        self.story.append(Paragraph(
            f"Kurzy ECB (ročný priemer): USD {dividends.ecb_rate}, CZK {dividends.czk_rate} za 1 EUR.",
            self.styles['BodyText']))

    def _add_settlement(self):
        self.story.append(Paragraph("Výsledok", self.styles['H2']))
        if self.result.is_refund:
            text = f"Daňový preplatok (r.136): {format_amount_sk(self.result.final_tax_refund)} EUR"
        else:
            text = f"Daň na úhradu (r.135): {format_amount_sk(self.result.final_tax_to_pay)} EUR"
        self.story.append(Paragraph(text, self.styles['BodyText']))

    def _add_warnings(self):
        if not self.warnings:
            return
        self.story.append(Paragraph("Upozornenia", self.styles['H2']))
        data = [["Krok", "Oddiel", "Pole"]]
        for warning in self.warnings:
            data.append([str(warning.step + 1), warning.section, warning.field])
        self.story.append(self._create_styled_table(data, col_widths=[1.5 * cm, 4.5 * cm, 10 * cm]))

    def generate(self, output_file_path: str):
        logger.info(f"Creating PDF summary: {output_file_path}")
        doc = SimpleDocTemplate(output_file_path)

        self.story = []
        self._add_title()
        self._add_rows_summary()
        self._add_dividend_details()
        self._add_settlement()
        self._add_warnings()

        try:
            doc.build(self.story)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to create PDF summary {output_file_path}: {e}", exc_info=True)
            raise
        logger.info(f"PDF summary created: {output_file_path}")
