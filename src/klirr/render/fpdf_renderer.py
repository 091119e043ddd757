"""Invoice renderer backed by fpdf2."""

import logging
from decimal import Decimal
from typing import Optional

from fpdf import FPDF
from fpdf.enums import XPos, YPos
from fpdf.errors import FPDFException

from klirr.domain.entities import CompanyInformation, RenderInput
from klirr.domain.errors import PdfCompile
from klirr.domain.l18n import L18n
from klirr.domain.money import PricedItem
from klirr.domain.period import YearAndMonth, YearOnly
from klirr.render.base import DocumentRenderer, Pdf, StaticLayout

logger = logging.getLogger("klirr.render")

TTF_FAMILY = "InvoiceSans"
LINE_HEIGHT = 5.0
ROW_HEIGHT = 7.0
SECTION_SPACING = 6.0

# Fractions of the usable page width
TABLE_COLUMNS = (
    ("description", 0.36, "L"),
    ("when", 0.16, "L"),
    ("quantity", 0.12, "R"),
    ("unit_price", 0.18, "R"),
    ("total_cost", 0.18, "R"),
)


def hex_to_rgb(color: str) -> tuple[int, int, int]:
    value = color.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def format_amount(amount: Decimal, currency: str) -> str:
    return f"{amount:,.2f} {currency}"


def format_quantity(quantity: Decimal) -> str:
    return format(quantity.normalize(), "f")


def format_when(item: PricedItem, l18n: L18n) -> str:
    when = item.item.when
    if isinstance(when, YearOnly):
        return str(when)
    if isinstance(when, YearAndMonth):
        return f"{l18n.month_name(when.month)} {when.year}"
    return when.to_date().isoformat()


class InvoicePdf(FPDF):
    """FPDF document carrying the font choice and the footer lines."""

    def __init__(self, layout: StaticLayout, footer_lines: list[str]):
        super().__init__(orientation="P", unit="mm", format="A4")
        self.page_style = layout
        self.footer_lines = footer_lines
        self.font_choice = layout.font_family
        self.unicode_font = False
        self.set_margins(layout.margin_mm, layout.margin_mm, layout.margin_mm)
        self.set_auto_page_break(auto=True, margin=layout.margin_mm + len(footer_lines) * LINE_HEIGHT)
        self._load_font()

    def _load_font(self) -> None:
        if self.page_style.font_path is None:
            return
        try:
            self.add_font(TTF_FAMILY, "", str(self.page_style.font_path))
            bold = self.page_style.bold_font_path or self.page_style.font_path
            self.add_font(TTF_FAMILY, "B", str(bold))
        except (OSError, FPDFException) as e:
            logger.warning("Could not load font %s (%s), using %s", self.page_style.font_path, e, self.font_choice)
            return
        self.font_choice = TTF_FAMILY
        self.unicode_font = True

    def text_of(self, text: Optional[str]) -> str:
        """Text as it can be drawn with the current font."""
        if not text:
            return ""
        if self.unicode_font:
            return text
        # Core fonts only cover Latin-1
        return text.encode("latin-1", "replace").decode("latin-1")

    def use_font(self, style: str = "", size: Optional[float] = None) -> None:
        self.set_font(self.font_choice, style, size or self.page_style.base_font_size)

    def line_of_text(self, text: Optional[str], align: str = "L", width: float = 0) -> None:
        self.cell(width, LINE_HEIGHT, text=self.text_of(text), align=align, new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def footer(self) -> None:
        if not self.footer_lines:
            return
        self.set_y(-(self.page_style.margin_mm + len(self.footer_lines) * LINE_HEIGHT))
        self.use_font(size=self.page_style.base_font_size - 1)
        self.set_text_color(110, 110, 110)
        for line in self.footer_lines:
            self.line_of_text(line, align="C")
        self.set_text_color(0, 0, 0)


def _address_lines(company: CompanyInformation) -> list[str]:
    address = company.postal_address
    lines = [address.street_address_line_1]
    if address.street_address_line_2:
        lines.append(address.street_address_line_2)
    lines.append(f"{address.zip} {address.city}")
    lines.append(address.country)
    return lines


def _footer_lines(render_input: RenderInput) -> list[str]:
    labels = render_input.l18n.vendor_info
    vendor = render_input.vendor
    payment = render_input.payment_info
    lines = [
        f"{vendor.company_name}  |  {labels.address} {', '.join(_address_lines(vendor))}",
        f"{labels.organisation_number} {vendor.organisation_number}  |  {labels.vat_number} {vendor.vat_number}",
        f"{labels.bank} {payment.bank_name}  |  {labels.iban} {payment.iban}  |  {labels.bic} {payment.bic}",
    ]
    if render_input.footer:
        lines.append(render_input.footer)
    return lines


class FpdfRenderer(DocumentRenderer):
    """Single page A4 invoice drawn with fpdf2."""

    def render(self, render_input: RenderInput, layout: StaticLayout) -> Pdf:
        try:
            pdf = InvoicePdf(layout, _footer_lines(render_input))
            pdf.add_page()
            color = hex_to_rgb(render_input.information.emphasize_color_hex or layout.emphasize_color_hex)
            self._header(pdf, render_input, color)
            self._parties(pdf, render_input)
            self._line_items(pdf, render_input, color)
            document = bytes(pdf.output())
        except FPDFException as e:
            raise PdfCompile(f"Failed to render invoice {render_input.information.identifier}: {e}")
        logger.debug("Rendered %d bytes for invoice %s", len(document), render_input.information.identifier)
        return document

    def _header(self, pdf: InvoicePdf, render_input: RenderInput, color: tuple[int, int, int]) -> None:
        pdf.use_font("B", pdf.page_style.title_font_size)
        pdf.set_text_color(*color)
        pdf.cell(0, 10, text=pdf.text_of(render_input.l18n.invoice_info.title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_text_color(0, 0, 0)
        pdf.use_font("B", pdf.page_style.base_font_size + 3)
        pdf.line_of_text(render_input.vendor.company_name)
        pdf.ln(SECTION_SPACING)

    def _parties(self, pdf: InvoicePdf, render_input: RenderInput) -> None:
        l18n = render_input.l18n
        info = render_input.information
        client = render_input.client
        half = pdf.epw / 2

        client_lines = [client.company_name, *_address_lines(client)]
        client_lines.append(f"{l18n.client_info.vat_number} {client.vat_number}")

        labels = l18n.invoice_info
        info_rows = [
            (labels.invoice_identifier, str(info.identifier)),
            (labels.invoice_date, info.date.isoformat()),
            (labels.due_date, info.due_date.isoformat()),
            (labels.terms, str(info.terms)),
        ]
        if info.purchase_order:
            info_rows.append((labels.purchase_order, info.purchase_order))
        if client.contact_person:
            info_rows.append((labels.client_contact, client.contact_person))
        if render_input.vendor.contact_person:
            info_rows.append((labels.vendor_contact, render_input.vendor.contact_person))

        top = pdf.get_y()
        pdf.use_font("B")
        pdf.line_of_text(l18n.client_info.to_company, width=half)
        pdf.use_font()
        for line in client_lines:
            pdf.line_of_text(line, width=half)
        left_bottom = pdf.get_y()

        pdf.set_y(top)
        for label, value in info_rows:
            pdf.set_x(pdf.l_margin + half)
            pdf.use_font("B")
            pdf.cell(half * 0.5, LINE_HEIGHT, text=pdf.text_of(label), new_x=XPos.RIGHT, new_y=YPos.TOP)
            pdf.use_font()
            pdf.cell(half * 0.5, LINE_HEIGHT, text=pdf.text_of(value), align="R", new_x=XPos.LMARGIN, new_y=YPos.NEXT)

        pdf.set_y(max(left_bottom, pdf.get_y()) + SECTION_SPACING * 2)

    def _line_items(self, pdf: InvoicePdf, render_input: RenderInput, color: tuple[int, int, int]) -> None:
        l18n = render_input.l18n
        currency = render_input.currency
        widths = {key: pdf.epw * fraction for key, fraction, _ in TABLE_COLUMNS}

        pdf.use_font("B")
        pdf.set_fill_color(*color)
        pdf.set_text_color(255, 255, 255)
        for key, _, align in TABLE_COLUMNS:
            label = getattr(l18n.line_items, key)
            pdf.cell(widths[key], ROW_HEIGHT, text=pdf.text_of(label), align=align, fill=True,
                     new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.ln(ROW_HEIGHT)
        pdf.set_text_color(0, 0, 0)

        pdf.use_font()
        for priced in render_input.line_items:
            values = {
                "description": priced.item.name,
                "when": format_when(priced, l18n),
                "quantity": format_quantity(priced.item.quantity),
                "unit_price": format_amount(priced.converted_unit_price, currency),
                "total_cost": format_amount(priced.total_cost, currency),
            }
            for key, _, align in TABLE_COLUMNS:
                pdf.cell(widths[key], ROW_HEIGHT, text=pdf.text_of(values[key]), align=align, border="B",
                         new_x=XPos.RIGHT, new_y=YPos.TOP)
            pdf.ln(ROW_HEIGHT)

        pdf.ln(SECTION_SPACING / 2)
        label_width = pdf.epw - widths["total_cost"]
        pdf.use_font("B", pdf.page_style.base_font_size + 2)
        pdf.cell(label_width, ROW_HEIGHT, text=pdf.text_of(l18n.line_items.grand_total), align="R",
                 new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.set_text_color(*color)
        pdf.cell(widths["total_cost"], ROW_HEIGHT, text=format_amount(render_input.grand_total, currency),
                 align="R", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_text_color(0, 0, 0)
