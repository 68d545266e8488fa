from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from portal.database import get_db
from portal.deps import get_today, get_workspace_id
from portal.models.contact import Contact
from portal.models.sponsor import Sponsor
from portal.schemas.crm import ContactCreate, ContactResponse

router = APIRouter(prefix="/api/contacts", tags=["contacts"])


def _clean(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None


def _get_contact(db: Session, workspace_id: int, contact_id: int) -> Contact:
    contact = db.query(Contact).filter(Contact.id == contact_id, Contact.workspace_id == workspace_id).first()
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


@router.get("", response_model=List[ContactResponse])
def list_contacts(
    sponsor_id: Optional[int] = Query(None, description="Filter by sponsor ID"),
    workspace_id: int = Depends(get_workspace_id),
    db: Session = Depends(get_db)
):
    """Most recently touched first"""
    query = db.query(Contact).filter(Contact.workspace_id == workspace_id)
    if sponsor_id:
        query = query.filter(Contact.sponsor_id == sponsor_id)
    return query.order_by(
        Contact.last_touch_date.is_(None),
        Contact.last_touch_date.desc(),
        Contact.created_at.desc()
    ).all()


@router.post("", response_model=ContactResponse, status_code=201)
def create_contact(data: ContactCreate, workspace_id: int = Depends(get_workspace_id), db: Session = Depends(get_db)):
    name = data.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Name is required.")

    if data.sponsor_id is not None:
        sponsor = db.query(Sponsor).filter(Sponsor.id == data.sponsor_id, Sponsor.workspace_id == workspace_id).first()
        if not sponsor:
            raise HTTPException(status_code=404, detail=f"Sponsor with ID {data.sponsor_id} not found")

    contact = Contact(
        workspace_id=workspace_id,
        sponsor_id=data.sponsor_id,
        name=name,
        role=_clean(data.role),
        company=_clean(data.company),
        email=_clean(data.email),
        phone=_clean(data.phone),
        is_billing=data.is_billing,
        last_touch_date=data.last_touch_date,
        notes=_clean(data.notes)
    )
    db.add(contact)
    db.commit()
    db.refresh(contact)
    return contact


@router.post("/{contact_id}/touch", response_model=ContactResponse)
def touch_contact(
    contact_id: int,
    today: date = Depends(get_today),
    workspace_id: int = Depends(get_workspace_id),
    db: Session = Depends(get_db)
):
    """Record that the contact was reached today"""
    contact = _get_contact(db, workspace_id, contact_id)
    contact.last_touch_date = today
    db.commit()
    db.refresh(contact)
    return contact


@router.delete("/{contact_id}", status_code=204)
def delete_contact(contact_id: int, workspace_id: int = Depends(get_workspace_id), db: Session = Depends(get_db)):
    contact = _get_contact(db, workspace_id, contact_id)
    db.delete(contact)
    db.commit()
    return Response(status_code=204)
