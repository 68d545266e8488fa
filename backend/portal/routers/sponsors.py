from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session
from typing import List
import logging

from portal.database import get_db
from portal.deps import get_workspace_id
from portal.models.sponsor import Sponsor
from portal.schemas.crm import SponsorCreate, SponsorResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sponsors", tags=["sponsors"])


@router.get("", response_model=List[SponsorResponse])
def list_sponsors(workspace_id: int = Depends(get_workspace_id), db: Session = Depends(get_db)):
    """List sponsors by name"""
    return db.query(Sponsor).filter(Sponsor.workspace_id == workspace_id).order_by(Sponsor.name.asc()).all()


@router.post("", response_model=SponsorResponse, status_code=201)
def create_sponsor(data: SponsorCreate, workspace_id: int = Depends(get_workspace_id), db: Session = Depends(get_db)):
    name = data.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Name is required.")

    sponsor = Sponsor(workspace_id=workspace_id, name=name, notes=(data.notes or "").strip() or None)
    db.add(sponsor)
    db.commit()
    db.refresh(sponsor)
    logger.info(f"Created sponsor {sponsor.id}: {sponsor.name}")
    return sponsor


@router.delete("/{sponsor_id}", status_code=204)
def delete_sponsor(sponsor_id: int, workspace_id: int = Depends(get_workspace_id), db: Session = Depends(get_db)):
    """Delete a sponsor; its contracts go with it"""
    sponsor = db.query(Sponsor).filter(Sponsor.id == sponsor_id, Sponsor.workspace_id == workspace_id).first()
    if not sponsor:
        raise HTTPException(status_code=404, detail="Sponsor not found")
    db.delete(sponsor)
    db.commit()
    return Response(status_code=204)
