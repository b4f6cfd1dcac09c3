"""Local PDF rendering of a rental contract snapshot

Used by ``rental-contracts pdf --local`` and the view service when the
backend PDF endpoint is unavailable. The layout follows the backend's
agreement: parties side by side, property and term, fixtures, terms,
then one signature box per party and the witness.
"""

import base64
import binascii
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import cm
from reportlab.lib.utils import ImageReader
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from rental_contracts.models.contract import Contract, Signature
from rental_contracts.services.evaluator import resolve_status, status_badge
from rental_contracts.utils.pdf_fonts import currency_symbol, get_font_name, register_fonts

BRAND_GREEN = colors.HexColor("#14532d")
FOOTER = "This document is digitally generated and legally binding under Indian law."


def format_currency(amount: float, symbol: Optional[str] = None) -> str:
    """Format a rupee amount with thousands separators"""
    symbol = symbol if symbol is not None else currency_symbol()
    if float(amount).is_integer():
        return f"{symbol}{amount:,.0f}"
    return f"{symbol}{amount:,.2f}"


def _format_date(value: Optional[datetime]) -> str:
    return value.strftime("%d/%m/%Y") if value else "________________"


def _decode_data_url(data_url: str) -> bytes:
    """``data:image/png;base64,...`` or bare base64 -> raw bytes"""
    _, _, payload = data_url.partition(",")
    return base64.b64decode(payload or data_url, validate=False)


class ContractPDFGenerator:
    """Render a ``Contract`` to PDF"""

    def __init__(self):
        register_fonts()
        self.font_name = get_font_name()
        self.font_bold = get_font_name(bold=True)
        self._init_styles()

    def _init_styles(self):
        self.styles = {
            "header": ParagraphStyle("Header", fontName=self.font_bold,
                fontSize=16, alignment=TA_CENTER, spaceAfter=4, textColor=BRAND_GREEN),
            "title": ParagraphStyle("Title", fontName=self.font_bold,
                fontSize=14, alignment=TA_CENTER, spaceAfter=10, spaceBefore=10,
                textColor=BRAND_GREEN),
            "section": ParagraphStyle("Section", fontName=self.font_bold,
                fontSize=11, spaceBefore=12, spaceAfter=6, textColor=BRAND_GREEN),
            "normal": ParagraphStyle("Normal", fontName=self.font_name,
                fontSize=10, leading=14, alignment=TA_JUSTIFY),
            "small": ParagraphStyle("Small", fontName=self.font_name,
                fontSize=8, textColor=colors.gray),
        }

    def render(self, contract: Contract) -> bytes:
        """Return the PDF as bytes"""
        buffer = BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4,
            rightMargin=2*cm, leftMargin=2*cm, topMargin=1.5*cm, bottomMargin=1.5*cm,
            title=f"Rental Contract {contract.contract_id}")
        doc.build(self._build_story(contract))
        return buffer.getvalue()

    def generate(self, contract: Contract, output_path: str) -> str:
        """Write the PDF to ``output_path`` and return it"""
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.render(contract))
        return str(path)

    def _p(self, text: str, style: str = "normal") -> Paragraph:
        return Paragraph(escape(text or ""), self.styles[style])

    def _build_story(self, contract: Contract) -> list:
        story = [
            self._p("GOVERNMENT OF INDIA", "header"),
            self._p("LEGAL RENTAL AGREEMENT", "title"),
            self._p(
                f"Contract ID: {contract.contract_id} | "
                f"Status: {status_badge(contract).text} ({resolve_status(contract).value})",
                "small"),
            Spacer(1, 10),
        ]
        story.extend(self._build_parties(contract))
        story.extend(self._build_property(contract))
        story.extend(self._build_terms(contract))
        story.extend(self._build_signatures(contract))
        story.extend(self._build_witness(contract))

        if contract.digital_hash:
            story.append(self._p(f"Verification hash: {contract.digital_hash}", "small"))
        story.append(self._p(FOOTER, "small"))
        return story

    def _build_parties(self, contract: Contract) -> list:
        landlord, tenant = contract.landlord_details, contract.tenant_details
        data = [
            ["LANDLORD DETAILS", "TENANT DETAILS"],
            [f"NAME: {contract.landlord_name}", f"NAME: {contract.tenant_name}"],
            [f"FATHER'S NAME: {contract.landlord_father_name}", f"FATHER'S NAME: {contract.tenant_father_name}"],
            [f"ADDRESS: {landlord.address}", f"WORKPLACE: {contract.tenant_occupation}"],
            [f"PHONE: {landlord.phone}", f"ADDRESS: {tenant.address}"],
            [f"EMAIL: {landlord.email}", f"PHONE: {tenant.phone}"],
            ["", f"EMAIL: {tenant.email}"],
        ]
        table = Table([[self._p(a), self._p(b)] if i else [a, b] for i, (a, b) in enumerate(data)],
                      colWidths=[8.5*cm, 8.5*cm])
        table.setStyle(TableStyle([
            ("FONTNAME", (0, 0), (-1, 0), self.font_bold),
            ("TEXTCOLOR", (0, 0), (-1, 0), BRAND_GREEN),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
        ]))
        return [table, Spacer(1, 8)]

    def _kv_table(self, rows: list) -> Table:
        table = Table([[f"{label}:", self._p(str(value))] for label, value in rows],
                      colWidths=[5*cm, 12*cm])
        table.setStyle(TableStyle([
            ("FONTNAME", (0, 0), (0, -1), self.font_bold),
            ("FONTSIZE", (0, 0), (-1, -1), 10),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ]))
        return table

    def _build_property(self, contract: Contract) -> list:
        rows = [
            ("Property", contract.property_title or contract.property_address),
            ("Address", contract.property_address),
            ("Term", f"{_format_date(contract.start_date)} to {_format_date(contract.end_date)}"
                     f" ({contract.duration_months} months)"),
            ("Monthly rent", format_currency(contract.monthly_rent)),
            ("Security deposit", format_currency(contract.security_deposit)),
            ("Maintenance", format_currency(contract.maintenance_charges)),
            ("Total value", format_currency(contract.total_value)),
            ("Fixtures", f"{contract.bedrooms} bedrooms, {contract.fans} fans, {contract.lights} lights, "
                         f"{contract.geysers} geysers, {contract.mirrors} mirrors, {contract.taps} taps"),
        ]
        if contract.place_of_execution:
            rows.append(("Place of execution", contract.place_of_execution))
        return [self._p("PROPERTY AND TERM", "section"), self._kv_table(rows)]

    def _build_terms(self, contract: Contract) -> list:
        story = []
        if contract.terms:
            story.append(self._p("TERMS", "section"))
            story.extend(self._p(line) for line in contract.terms.splitlines() if line.strip())
        if contract.conditions:
            story.append(self._p("CONDITIONS", "section"))
            story.extend(self._p(line) for line in contract.conditions.splitlines() if line.strip())
        return story

    def _signature_cell(self, label: str, name: str, approved: Optional[bool], signature: Signature) -> list:
        cell = [self._p(label, "section")]
        if approved is not None:
            cell.append(self._p("Approved" if approved else "Not approved yet", "small"))
        if signature.signed:
            image = self._signature_image(signature.signature_image)
            if image is not None:
                cell.append(image)
            elif signature.signature_image:
                cell.append(self._p("Signature image error", "small"))
            cell.append(self._p(f"Signed: {_format_date(signature.signed_at)}", "small"))
            if signature.signature_text:
                cell.append(self._p(signature.signature_text, "small"))
        else:
            cell.append(self._p("Not signed yet", "small"))
        cell.append(self._p(name))
        return cell

    @staticmethod
    def _signature_image(data_url: Optional[str]) -> Optional[Image]:
        if not data_url:
            return None
        try:
            raw = _decode_data_url(data_url)
            width, height = ImageReader(BytesIO(raw)).getSize()
        except (binascii.Error, ValueError, OSError):
            return None
        scale = min(6*cm / width, 2*cm / height, 1)
        return Image(BytesIO(raw), width=width * scale, height=height * scale)

    def _build_signatures(self, contract: Contract) -> list:
        sigs, approvals = contract.signatures, contract.approvals
        row = [
            self._signature_cell("LANDLORD", contract.landlord_name, approvals.landlord.approved, sigs.landlord),
            self._signature_cell("TENANT", contract.tenant_name, approvals.tenant.approved, sigs.tenant),
        ]
        table = Table([row], colWidths=[8.5*cm, 8.5*cm])
        table.setStyle(TableStyle([
            ("BOX", (0, 0), (0, 0), 0.5, colors.gray),
            ("BOX", (1, 0), (1, 0), 0.5, colors.gray),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ]))
        return [Spacer(1, 12), table, Spacer(1, 12)]

    def _build_witness(self, contract: Contract) -> list:
        if not contract.witness_name:
            return []
        cell = self._signature_cell("WITNESS", contract.witness_name, None, contract.signatures.witness)
        return cell + [self._p(f"ADDRESS: {contract.witness_address}"), Spacer(1, 8)]


def generate_pdf(contract: Contract, output_path: str) -> str:
    """Render ``contract`` to ``output_path``"""
    return ContractPDFGenerator().generate(contract, output_path)
