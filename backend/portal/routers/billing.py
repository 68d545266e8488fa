from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from portal.database import get_db
from portal.deps import get_workspace_id
from portal.models.billing_profile import BillingProfile
from portal.schemas.crm import BillingProfileResponse, BillingProfileUpdate

router = APIRouter(prefix="/api/settings/billing", tags=["settings"])


@router.get("", response_model=Optional[BillingProfileResponse])
def get_billing_profile(workspace_id: int = Depends(get_workspace_id), db: Session = Depends(get_db)):
    """The workspace's invoice "From" details, or null if never saved"""
    return db.query(BillingProfile).filter(BillingProfile.workspace_id == workspace_id).first()


@router.put("", response_model=BillingProfileResponse)
def save_billing_profile(
    data: BillingProfileUpdate,
    workspace_id: int = Depends(get_workspace_id),
    db: Session = Depends(get_db)
):
    """Create or replace the billing profile (one per workspace)"""
    profile = db.query(BillingProfile).filter(BillingProfile.workspace_id == workspace_id).first()
    if not profile:
        profile = BillingProfile(workspace_id=workspace_id)
        db.add(profile)

    for field_name, value in data.model_dump().items():
        if isinstance(value, str):
            value = value.strip() or None
        setattr(profile, field_name, value)

    db.commit()
    db.refresh(profile)
    return profile
