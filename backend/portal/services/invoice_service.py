"""
Invoice Aggregate - an invoice header plus its ordered line items.

Line items are never patched individually: every create or edit validates the
submitted rows, renumbers them 1..N, recomputes the invoice amount and
replaces the stored set inside one transaction.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portal.errors import DependencyError, NotFoundError, ValidationError
from portal.models.contract import Contract
from portal.models.invoice import Invoice
from portal.models.invoice_item import InvoiceItem
from portal.models.sponsor import Sponsor
from portal.schemas.invoice import InvoiceCreate, InvoiceListResponse, InvoiceResponse, LineItemInput
from portal.services.status_lifecycle import apply_status, check_transition, derive_status_dates
from portal.utils.money import quantize_money, to_decimal

logger = logging.getLogger(__name__)

OPEN_INVOICE_STATUSES = ("draft", "sent")


@dataclass(frozen=True)
class NormalizedLineItem:
    line_no: int
    description: str
    quantity: Decimal
    unit_price: Decimal

    @property
    def total(self) -> Decimal:
        return self.quantity * self.unit_price


def _to_stored_scale(raw) -> Optional[Decimal]:
    value = to_decimal(raw)
    if value is None or not value.is_finite():
        return value
    return quantize_money(value)


def normalize_line_items(raw_items: Iterable[LineItemInput]) -> List[NormalizedLineItem]:
    """
    Validate submitted rows and number them in submitted order.

    Rows with a blank description are dropped before anything else is
    checked, so an empty trailing row in the form is harmless. Quantity and
    unit price are rounded to the stored scale (cents) before they are
    checked, so the amount is always computed from what is persisted.

    Raises:
        ValidationError: EmptyInvoice, InvalidQuantity or InvalidUnitPrice
    """
    kept = []
    for raw in raw_items:
        description = (raw.description or "").strip()
        if description:
            kept.append((description, raw.quantity, raw.unit_price))

    if not kept:
        raise ValidationError("Invoice must have at least one line item", code="EmptyInvoice")

    lines = []
    for line_no, (description, raw_quantity, raw_unit_price) in enumerate(kept, start=1):
        quantity = _to_stored_scale(raw_quantity)
        if quantity is None or not quantity.is_finite() or quantity <= 0:
            raise ValidationError(
                f"Line {line_no}: quantity must be a number of at least 0.01",
                code="InvalidQuantity",
            )

        unit_price = _to_stored_scale(raw_unit_price)
        if unit_price is None or not unit_price.is_finite() or unit_price < 0:
            raise ValidationError(
                f"Line {line_no}: unit price must be a number of at least 0",
                code="InvalidUnitPrice",
            )

        lines.append(NormalizedLineItem(
            line_no=line_no,
            description=description,
            quantity=quantity,
            unit_price=unit_price,
        ))

    return lines


def compute_amount(lines: Iterable[NormalizedLineItem]) -> Decimal:
    """Invoice amount: sum of quantity x unit price, rounded to cents"""
    total = Decimal("0")
    for line in lines:
        total += line.total
    return quantize_money(total)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def get_invoice(db: Session, workspace_id: int, invoice_id: int) -> Invoice:
    invoice = db.query(Invoice).filter(
        Invoice.id == invoice_id,
        Invoice.workspace_id == workspace_id
    ).first()
    if not invoice:
        raise NotFoundError(f"Invoice {invoice_id} not found")
    return invoice


def _check_references(db: Session, workspace_id: int, sponsor_id: Optional[int], contract_id: Optional[int]) -> None:
    if sponsor_id is not None:
        sponsor = db.query(Sponsor).filter(
            Sponsor.id == sponsor_id,
            Sponsor.workspace_id == workspace_id
        ).first()
        if not sponsor:
            raise NotFoundError(f"Sponsor {sponsor_id} not found")

    if contract_id is not None:
        contract = db.query(Contract).filter(
            Contract.id == contract_id,
            Contract.workspace_id == workspace_id
        ).first()
        if not contract:
            raise NotFoundError(f"Contract {contract_id} not found")


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to {action}: {str(e)}")
        raise DependencyError(f"Failed to {action}") from e


def create_invoice(db: Session, workspace_id: int, user_id: str, data: InvoiceCreate, today: date) -> Invoice:
    """Validate and persist a new invoice with its line items"""
    lines = normalize_line_items(data.items)
    _check_references(db, workspace_id, data.sponsor_id, data.contract_id)
    check_transition(None, data.status)
    dates = derive_status_dates(data.status, data.sent_date, data.paid_date, today)

    invoice = Invoice(
        workspace_id=workspace_id,
        invoice_number=_clean(data.invoice_number),
        sponsor_id=data.sponsor_id,
        contract_id=data.contract_id,
        amount=compute_amount(lines),
        status=data.status,
        sent_date=dates.sent_date,
        paid_date=dates.paid_date,
        notes=_clean(data.notes),
        created_by=user_id,
    )
    db.add(invoice)
    try:
        db.flush()  # Header before items
        for line in lines:
            invoice.items.append(InvoiceItem(
                line_no=line.line_no,
                description=line.description,
                quantity=line.quantity,
                unit_price=line.unit_price,
            ))
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to create invoice: {str(e)}")
        raise DependencyError("Failed to create invoice") from e
    _commit(db, "create invoice")
    db.refresh(invoice)

    logger.info(f"Created invoice {invoice.id} with {len(lines)} line items, amount {invoice.amount}")
    return invoice


def update_invoice(db: Session, workspace_id: int, invoice_id: int, data: InvoiceCreate, today: date) -> Invoice:
    """
    Apply the full edit form to an invoice.

    The stored line items are replaced by the submitted set. Header update,
    item delete and item insert share one transaction; on failure it is
    rolled back and the previous items and amount remain.
    """
    invoice = get_invoice(db, workspace_id, invoice_id)
    lines = normalize_line_items(data.items)
    _check_references(db, workspace_id, data.sponsor_id, data.contract_id)
    check_transition(invoice.status, data.status)

    invoice_number = _clean(data.invoice_number)
    if invoice.invoice_number and invoice_number and invoice_number != invoice.invoice_number:
        raise ValidationError(
            f"Invoice number {invoice.invoice_number} cannot be changed",
            code="InvoiceNumberImmutable",
        )

    dates = derive_status_dates(data.status, data.sent_date, data.paid_date, today)

    try:
        invoice.invoice_number = invoice.invoice_number or invoice_number
        invoice.sponsor_id = data.sponsor_id
        invoice.contract_id = data.contract_id
        invoice.status = data.status
        invoice.sent_date = dates.sent_date
        invoice.paid_date = dates.paid_date
        invoice.notes = _clean(data.notes)
        invoice.amount = compute_amount(lines)

        # Delete the old set before inserting so line numbers never collide
        invoice.items.clear()
        db.flush()
        for line in lines:
            invoice.items.append(InvoiceItem(
                line_no=line.line_no,
                description=line.description,
                quantity=line.quantity,
                unit_price=line.unit_price,
            ))
        db.flush()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to replace line items for invoice {invoice_id}: {str(e)}")
        raise DependencyError(f"Failed to update invoice {invoice_id}") from e

    _commit(db, f"update invoice {invoice_id}")
    db.refresh(invoice)

    logger.info(f"Updated invoice {invoice.id}: {len(lines)} line items, amount {invoice.amount}")
    return invoice


def set_invoice_status(db: Session, workspace_id: int, invoice_id: int, status: str, today: date) -> Invoice:
    """Quick status change from the invoice list"""
    invoice = get_invoice(db, workspace_id, invoice_id)
    apply_status(invoice, status, today)
    _commit(db, f"update status of invoice {invoice_id}")
    db.refresh(invoice)
    return invoice


def delete_invoice(db: Session, workspace_id: int, invoice_id: int) -> None:
    invoice = get_invoice(db, workspace_id, invoice_id)
    db.delete(invoice)
    _commit(db, f"delete invoice {invoice_id}")
    logger.info(f"Deleted invoice {invoice_id}")


def list_invoices(db: Session, workspace_id: int, show_all: bool = False) -> List[Invoice]:
    """Newest first; only draft/sent unless show_all"""
    query = db.query(Invoice).filter(Invoice.workspace_id == workspace_id)
    if not show_all:
        query = query.filter(Invoice.status.in_(OPEN_INVOICE_STATUSES))
    return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()


def sponsor_names(db: Session, workspace_id: int) -> Dict[int, str]:
    sponsors = db.query(Sponsor.id, Sponsor.name).filter(Sponsor.workspace_id == workspace_id).all()
    return {sponsor_id: name for sponsor_id, name in sponsors}


def sorted_items(invoice: Invoice) -> List[InvoiceItem]:
    return sorted(invoice.items, key=lambda item: item.line_no or 0)


def to_list_response(invoice: Invoice, names: Dict[int, str]) -> InvoiceListResponse:
    return InvoiceListResponse(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        sponsor_id=invoice.sponsor_id,
        sponsor_name=names.get(invoice.sponsor_id) if invoice.sponsor_id else None,
        contract_id=invoice.contract_id,
        amount=invoice.amount,
        status=invoice.status,
        sent_date=invoice.sent_date,
        paid_date=invoice.paid_date,
        notes=invoice.notes,
        created_at=invoice.created_at,
    )


def to_response(invoice: Invoice, names: Dict[int, str]) -> InvoiceResponse:
    base = to_list_response(invoice, names)
    return InvoiceResponse(
        **base.model_dump(),
        reminder_sent_at=invoice.reminder_sent_at,
        created_by=invoice.created_by,
        updated_at=invoice.updated_at,
        items=[
            {
                "id": item.id,
                "line_no": item.line_no,
                "description": item.description,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
            }
            for item in sorted_items(invoice)
        ],
    )
