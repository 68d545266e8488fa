from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from typing import List
from datetime import date
import logging

from portal.database import get_db
from portal.deps import get_current_user, get_today, get_workspace_id
from portal.schemas.invoice import (
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceStatusUpdate,
    InvoiceResponse,
    InvoiceListResponse,
)
from portal.services import invoice_service
from portal.services.identity_service import AuthenticatedUser
from portal.services.pdf_service import render_invoice_pdf, resolve_invoice_document

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


@router.get("", response_model=List[InvoiceListResponse])
def list_invoices(
    show_all: bool = Query(False, description="Include paid and void invoices"),
    workspace_id: int = Depends(get_workspace_id),
    db: Session = Depends(get_db)
):
    """List invoices, newest first (draft/sent only unless show_all)"""
    invoices = invoice_service.list_invoices(db, workspace_id, show_all)
    names = invoice_service.sponsor_names(db, workspace_id)
    return [invoice_service.to_list_response(invoice, names) for invoice in invoices]


@router.post("", response_model=InvoiceResponse, status_code=201)
def create_invoice(
    data: InvoiceCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    workspace_id: int = Depends(get_workspace_id),
    today: date = Depends(get_today),
    db: Session = Depends(get_db)
):
    """Create an invoice; the amount is computed from the line items"""
    invoice = invoice_service.create_invoice(db, workspace_id, user.id, data, today)
    return invoice_service.to_response(invoice, invoice_service.sponsor_names(db, workspace_id))


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: int,
    workspace_id: int = Depends(get_workspace_id),
    db: Session = Depends(get_db)
):
    """Get invoice detail with line items in line_no order"""
    invoice = invoice_service.get_invoice(db, workspace_id, invoice_id)
    return invoice_service.to_response(invoice, invoice_service.sponsor_names(db, workspace_id))


@router.put("/{invoice_id}", response_model=InvoiceResponse)
def update_invoice(
    invoice_id: int,
    data: InvoiceUpdate,
    workspace_id: int = Depends(get_workspace_id),
    today: date = Depends(get_today),
    db: Session = Depends(get_db)
):
    """Save the edit form; submitted line items replace the stored ones"""
    invoice = invoice_service.update_invoice(db, workspace_id, invoice_id, data, today)
    return invoice_service.to_response(invoice, invoice_service.sponsor_names(db, workspace_id))


@router.patch("/{invoice_id}/status", response_model=InvoiceResponse)
def update_invoice_status(
    invoice_id: int,
    data: InvoiceStatusUpdate,
    workspace_id: int = Depends(get_workspace_id),
    today: date = Depends(get_today),
    db: Session = Depends(get_db)
):
    """Mark sent / mark paid / void"""
    invoice = invoice_service.set_invoice_status(db, workspace_id, invoice_id, data.status, today)
    return invoice_service.to_response(invoice, invoice_service.sponsor_names(db, workspace_id))


@router.delete("/{invoice_id}", status_code=204)
def delete_invoice(
    invoice_id: int,
    workspace_id: int = Depends(get_workspace_id),
    db: Session = Depends(get_db)
):
    invoice_service.delete_invoice(db, workspace_id, invoice_id)
    return Response(status_code=204)


@router.get("/{invoice_id}/pdf")
def download_invoice_pdf(
    invoice_id: int,
    workspace_id: int = Depends(get_workspace_id),
    db: Session = Depends(get_db)
):
    """Render the invoice as a PDF attachment"""
    document = resolve_invoice_document(db, workspace_id, invoice_id)
    content = render_invoice_pdf(document)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{document.filename}"',
            "Cache-Control": "no-store",
        }
    )
