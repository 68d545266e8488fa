"""
Invoice PDF rendering.

resolve_invoice_document gathers everything printed on an invoice (header,
line items in line_no order, sponsor, billing profile, bill-to contact) as
plain data; render_invoice_pdf lays it out with fpdf2.
"""
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from fpdf import FPDF
from sqlalchemy.orm import Session

from portal.models.billing_profile import BillingProfile
from portal.models.contact import Contact
from portal.models.invoice import Invoice
from portal.models.invoice_item import InvoiceItem
from portal.models.sponsor import Sponsor
from portal.services.invoice_service import get_invoice, sorted_items
from portal.utils.money import format_money

logger = logging.getLogger(__name__)

UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class InvoiceDocument:
    invoice: Invoice
    items: List[InvoiceItem] = field(default_factory=list)
    sponsor: Optional[Sponsor] = None
    profile: Optional[BillingProfile] = None
    bill_to: Optional[Contact] = None

    @property
    def filename(self) -> str:
        # Content-Disposition value: ASCII subset only
        label = UNSAFE_FILENAME_CHARS.sub("_", self.invoice.invoice_number or "").strip("_")
        return f"Invoice-{label or self.invoice.id}.pdf"


def pick_bill_to(contacts: List[Contact]) -> Optional[Contact]:
    """Flagged billing contact, else one whose role mentions billing, else the oldest"""
    for contact in contacts:
        if contact.is_billing:
            return contact
    for contact in contacts:
        if "billing" in (contact.role or "").lower():
            return contact
    return contacts[0] if contacts else None


def resolve_invoice_document(db: Session, workspace_id: int, invoice_id: int) -> InvoiceDocument:
    invoice = get_invoice(db, workspace_id, invoice_id)

    sponsor = None
    contacts = []
    if invoice.sponsor_id:
        sponsor = db.query(Sponsor).filter(Sponsor.id == invoice.sponsor_id).first()
        contacts = db.query(Contact).filter(
            Contact.workspace_id == workspace_id,
            Contact.sponsor_id == invoice.sponsor_id
        ).order_by(Contact.created_at.asc(), Contact.id.asc()).all()

    profile = db.query(BillingProfile).filter(BillingProfile.workspace_id == workspace_id).first()

    return InvoiceDocument(
        invoice=invoice,
        items=sorted_items(invoice),
        sponsor=sponsor,
        profile=profile,
        bill_to=pick_bill_to(contacts),
    )


def _text(value) -> str:
    # Core PDF fonts only cover latin-1
    return str(value or "").encode("latin-1", "replace").decode("latin-1")


def _from_lines(profile: Optional[BillingProfile]) -> List[str]:
    if not profile:
        return []
    city_line = ", ".join(p for p in (profile.city, profile.state, profile.postal_code) if p)
    lines = [
        profile.address_line1,
        profile.address_line2,
        city_line,
        profile.country,
        profile.email,
        profile.phone,
        profile.website,
    ]
    return [line for line in lines if line]


def _bill_to_lines(doc: InvoiceDocument) -> List[str]:
    lines = []
    contact = doc.bill_to
    if contact and contact.company:
        lines.append(contact.company)
    if contact and contact.name:
        lines.append(contact.name)
    if not lines and doc.sponsor:
        lines.append(doc.sponsor.name)
    if contact and contact.email:
        lines.append(contact.email)
    if contact and contact.phone:
        lines.append(contact.phone)
    return lines or ["-"]


def render_invoice_pdf(doc: InvoiceDocument) -> bytes:
    invoice = doc.invoice
    profile = doc.profile

    pdf = FPDF(unit="pt", format="Letter")
    pdf.set_margins(50, 50, 50)
    pdf.set_auto_page_break(auto=True, margin=60)
    pdf.add_page()

    # --- From ---
    from_name = (profile.business_name or profile.contact_name) if profile else None
    pdf.set_font("Helvetica", "B", 16)
    pdf.cell(300, 20, _text(from_name or "Billing"))
    pdf.set_font("Helvetica", "B", 18)
    pdf.cell(0, 20, "INVOICE", align="R", new_x="LMARGIN", new_y="NEXT")

    pdf.set_font("Helvetica", "", 10)
    issued = invoice.sent_date or (invoice.created_at.date() if invoice.created_at else None)
    info = [
        f"Invoice #: {invoice.invoice_number or ''}",
        f"Date: {issued.isoformat() if issued else ''}",
        f"Status: {invoice.status or 'draft'}",
    ]
    from_lines = _from_lines(profile)
    for i in range(max(len(from_lines), len(info))):
        left = from_lines[i] if i < len(from_lines) else ""
        right = info[i] if i < len(info) else ""
        pdf.cell(300, 14, _text(left))
        pdf.cell(0, 14, _text(right), align="R", new_x="LMARGIN", new_y="NEXT")
    pdf.ln(20)

    # --- Bill To ---
    pdf.set_font("Helvetica", "B", 12)
    pdf.cell(0, 16, "Bill To:", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 10)
    for line in _bill_to_lines(doc):
        pdf.cell(0, 13, _text(line)[:90], new_x="LMARGIN", new_y="NEXT")
    pdf.ln(12)

    # --- Line items ---
    pdf.set_font("Helvetica", "B", 10)
    pdf.cell(300, 16, "Description", border="B")
    pdf.cell(60, 16, "Qty", border="B", align="R")
    pdf.cell(75, 16, "Unit", border="B", align="R")
    pdf.cell(0, 16, "Amount", border="B", align="R", new_x="LMARGIN", new_y="NEXT")

    pdf.set_font("Helvetica", "", 10)
    for item in doc.items:
        quantity = Decimal(item.quantity or 0)
        unit_price = Decimal(item.unit_price or 0)
        pdf.cell(300, 14, _text(item.description)[:60])
        pdf.cell(60, 14, f"{quantity.normalize():f}", align="R")
        pdf.cell(75, 14, format_money(unit_price), align="R")
        pdf.cell(0, 14, format_money(quantity * unit_price), align="R", new_x="LMARGIN", new_y="NEXT")

    pdf.ln(10)
    pdf.set_font("Helvetica", "B", 12)
    pdf.cell(0, 16, f"Total: {format_money(invoice.amount)}", align="R", new_x="LMARGIN", new_y="NEXT")

    # --- Payment ---
    if profile and (profile.payment_method or profile.payment_instructions):
        pdf.ln(16)
        pdf.set_font("Helvetica", "B", 11)
        pdf.cell(0, 14, "Payment:", new_x="LMARGIN", new_y="NEXT")
        pdf.set_font("Helvetica", "", 10)
        payment_lines = [
            profile.payment_method,
            profile.bank_name,
            profile.account_name,
            f"Account ending {profile.account_number_last4}" if profile.account_number_last4 else None,
            f"Routing {profile.routing_number}" if profile.routing_number else None,
        ]
        for line in payment_lines:
            if line:
                pdf.cell(0, 13, _text(line), new_x="LMARGIN", new_y="NEXT")
        if profile.payment_instructions:
            pdf.multi_cell(0, 13, _text(profile.payment_instructions)[:500])

    # --- Notes ---
    if invoice.notes:
        pdf.ln(16)
        pdf.set_font("Helvetica", "B", 11)
        pdf.cell(0, 14, "Notes:", new_x="LMARGIN", new_y="NEXT")
        pdf.set_font("Helvetica", "", 10)
        pdf.multi_cell(0, 13, _text(invoice.notes)[:300])

    logger.info(f"Rendered PDF for invoice {invoice.id} ({len(doc.items)} line items)")
    return bytes(pdf.output())
