"""
Request-scoped dependencies: the authenticated user, their workspace, and
the collaborators routers need. Tests override these through
app.dependency_overrides.
"""
from datetime import date
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.services.email_service import get_email_service
from portal.services.identity_service import AuthenticatedUser, IdentityService, identity_service
from portal.services.workspace_service import resolve_workspace_id
from portal.utils.dates import today


def get_identity() -> IdentityService:
    return identity_service


def get_email_sender():
    return get_email_service()


def get_today() -> date:
    return today()


def get_current_user(
    authorization: Optional[str] = Header(None),
    identity: IdentityService = Depends(get_identity),
) -> AuthenticatedUser:
    token = None
    if authorization and authorization.startswith("Bearer "):
        token = authorization[len("Bearer "):].strip()
    return identity.get_user(token)


def get_workspace_id(
    x_workspace_id: Optional[int] = Header(None),
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> int:
    return resolve_workspace_id(db, user.id, x_workspace_id)
