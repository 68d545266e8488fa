import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from portal.errors import ForbiddenError, NotFoundError, ValidationError
from portal.models.workspace import Workspace, WorkspaceMember

logger = logging.getLogger(__name__)


def list_memberships(db: Session, user_id: str) -> List[WorkspaceMember]:
    """The user's memberships, oldest first"""
    return db.query(WorkspaceMember).filter(
        WorkspaceMember.user_id == user_id
    ).order_by(WorkspaceMember.created_at.asc(), WorkspaceMember.id.asc()).all()


def resolve_workspace_id(db: Session, user_id: str, requested: Optional[int] = None) -> int:
    """
    Pick the workspace a request operates on.

    A user with exactly one membership gets it implicitly. A user with several
    must name one; membership is checked either way.
    """
    memberships = list_memberships(db, user_id)
    workspace_ids = [m.workspace_id for m in memberships]

    if requested is not None:
        if requested not in workspace_ids:
            raise ForbiddenError("Forbidden: not a workspace member")
        return requested

    if not workspace_ids:
        raise NotFoundError("No workspace found for this user. Ask the owner to add you as a workspace member.")
    if len(workspace_ids) > 1:
        raise ValidationError(
            "User belongs to several workspaces; select one with the X-Workspace-Id header",
            code="WorkspaceSelectionRequired",
        )
    return workspace_ids[0]


def workspace_names(db: Session, workspace_ids: List[int]) -> dict:
    if not workspace_ids:
        return {}
    rows = db.query(Workspace.id, Workspace.name).filter(Workspace.id.in_(workspace_ids)).all()
    return {workspace_id: name for workspace_id, name in rows}
