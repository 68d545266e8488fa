from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List
import logging

from portal.database import get_db
from portal.deps import get_workspace_id
from portal.models.contract import Contract
from portal.models.obligation import Obligation, OPEN_OBLIGATION_STATUSES
from portal.models.sponsor import Sponsor
from portal.schemas.crm import ObligationCreate, ObligationResponse, ObligationStatusUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/obligations", tags=["obligations"])


@router.get("", response_model=List[ObligationResponse])
def list_obligations(
    show_all: bool = Query(False, description="Include done and skipped obligations"),
    workspace_id: int = Depends(get_workspace_id),
    db: Session = Depends(get_db)
):
    """By due date (undated last), newest first within a date"""
    query = db.query(Obligation).filter(Obligation.workspace_id == workspace_id)
    if not show_all:
        query = query.filter(Obligation.status.in_(OPEN_OBLIGATION_STATUSES))
    return query.order_by(
        Obligation.due_date.is_(None),
        Obligation.due_date.asc(),
        Obligation.created_at.desc()
    ).all()


@router.post("", response_model=ObligationResponse, status_code=201)
def create_obligation(data: ObligationCreate, workspace_id: int = Depends(get_workspace_id), db: Session = Depends(get_db)):
    title = data.title.strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title is required.")

    if data.sponsor_id is not None:
        if not db.query(Sponsor).filter(Sponsor.id == data.sponsor_id, Sponsor.workspace_id == workspace_id).first():
            raise HTTPException(status_code=404, detail=f"Sponsor with ID {data.sponsor_id} not found")
    if data.contract_id is not None:
        if not db.query(Contract).filter(Contract.id == data.contract_id, Contract.workspace_id == workspace_id).first():
            raise HTTPException(status_code=404, detail=f"Contract with ID {data.contract_id} not found")

    obligation = Obligation(
        workspace_id=workspace_id,
        title=title,
        type=data.type,
        status=data.status,
        due_date=data.due_date,
        sponsor_id=data.sponsor_id,
        contract_id=data.contract_id,
        notes=(data.notes or "").strip() or None
    )
    db.add(obligation)
    db.commit()
    db.refresh(obligation)
    return obligation


@router.patch("/{obligation_id}/status", response_model=ObligationResponse)
def update_obligation_status(
    obligation_id: int,
    data: ObligationStatusUpdate,
    workspace_id: int = Depends(get_workspace_id),
    db: Session = Depends(get_db)
):
    obligation = db.query(Obligation).filter(
        Obligation.id == obligation_id,
        Obligation.workspace_id == workspace_id
    ).first()
    if not obligation:
        raise HTTPException(status_code=404, detail="Obligation not found")

    logger.info(f"Obligation {obligation_id}: status {obligation.status} -> {data.status}")
    obligation.status = data.status
    db.commit()
    db.refresh(obligation)
    return obligation
