from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from portal.database import get_db
from portal.deps import get_current_user
from portal.schemas.crm import WorkspaceMembershipResponse
from portal.services.identity_service import AuthenticatedUser
from portal.services.workspace_service import list_memberships, workspace_names

router = APIRouter(prefix="/api/workspaces", tags=["workspaces"])


@router.get("", response_model=List[WorkspaceMembershipResponse])
def list_my_workspaces(
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Workspaces the caller belongs to, oldest membership first"""
    memberships = list_memberships(db, user.id)
    names = workspace_names(db, [m.workspace_id for m in memberships])
    return [
        WorkspaceMembershipResponse(
            workspace_id=m.workspace_id,
            workspace_name=names.get(m.workspace_id),
            role=m.role
        )
        for m in memberships
    ]
