from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session
from typing import List, Optional

from portal.database import get_db
from portal.deps import get_workspace_id
from portal.models.contract import Contract
from portal.models.sponsor import Sponsor
from portal.schemas.crm import ContractCreate, ContractResponse

router = APIRouter(prefix="/api/contracts", tags=["contracts"])


@router.get("", response_model=List[ContractResponse])
def list_contracts(
    sponsor_id: Optional[int] = Query(None, description="Filter by sponsor ID"),
    workspace_id: int = Depends(get_workspace_id),
    db: Session = Depends(get_db)
):
    """List contracts by end date (open-ended last), newest first within a date"""
    query = db.query(Contract).filter(Contract.workspace_id == workspace_id)
    if sponsor_id:
        query = query.filter(Contract.sponsor_id == sponsor_id)
    return query.order_by(
        Contract.end_date.is_(None),
        Contract.end_date.asc(),
        Contract.created_at.desc()
    ).all()


@router.post("", response_model=ContractResponse, status_code=201)
def create_contract(data: ContractCreate, workspace_id: int = Depends(get_workspace_id), db: Session = Depends(get_db)):
    sponsor = db.query(Sponsor).filter(Sponsor.id == data.sponsor_id, Sponsor.workspace_id == workspace_id).first()
    if not sponsor:
        raise HTTPException(status_code=404, detail=f"Sponsor with ID {data.sponsor_id} not found")

    if data.start_date and data.end_date and data.end_date < data.start_date:
        raise HTTPException(status_code=400, detail="End date must not be before start date")

    contract = Contract(
        workspace_id=workspace_id,
        sponsor_id=data.sponsor_id,
        start_date=data.start_date,
        end_date=data.end_date,
        base_pay=data.base_pay,
        notes=(data.notes or "").strip() or None
    )
    db.add(contract)
    db.commit()
    db.refresh(contract)
    return contract


@router.delete("/{contract_id}", status_code=204)
def delete_contract(contract_id: int, workspace_id: int = Depends(get_workspace_id), db: Session = Depends(get_db)):
    contract = db.query(Contract).filter(Contract.id == contract_id, Contract.workspace_id == workspace_id).first()
    if not contract:
        raise HTTPException(status_code=404, detail="Contract not found")
    db.delete(contract)
    db.commit()
    return Response(status_code=204)
