import pytest

from conftest import OWNER_ID
from portal.errors import ForbiddenError, NotFoundError, ValidationError
from portal.models.workspace import Workspace, WorkspaceMember
from portal.services.workspace_service import resolve_workspace_id


def add_workspace(db, name, *members):
    workspace = Workspace(name=name)
    db.add(workspace)
    db.flush()
    for user_id in members:
        db.add(WorkspaceMember(workspace_id=workspace.id, user_id=user_id))
    db.commit()
    return workspace


def test_single_membership_is_implicit(db):
    workspace = add_workspace(db, "Solo", OWNER_ID)

    assert resolve_workspace_id(db, OWNER_ID) == workspace.id


def test_no_membership(db):
    add_workspace(db, "Someone else's", "other-user")

    with pytest.raises(NotFoundError):
        resolve_workspace_id(db, OWNER_ID)


def test_several_memberships_need_selection(db):
    first = add_workspace(db, "First", OWNER_ID)
    second = add_workspace(db, "Second", OWNER_ID)

    with pytest.raises(ValidationError) as exc:
        resolve_workspace_id(db, OWNER_ID)
    assert exc.value.code == "WorkspaceSelectionRequired"

    assert resolve_workspace_id(db, OWNER_ID, second.id) == second.id
    assert resolve_workspace_id(db, OWNER_ID, first.id) == first.id


def test_selecting_foreign_workspace_forbidden(db):
    add_workspace(db, "Mine", OWNER_ID)
    foreign = add_workspace(db, "Theirs", "other-user")

    with pytest.raises(ForbiddenError):
        resolve_workspace_id(db, OWNER_ID, foreign.id)


def test_list_workspaces_endpoint(client, auth_headers, db):
    add_workspace(db, "Alpha", OWNER_ID)
    add_workspace(db, "Beta", OWNER_ID)

    response = client.get("/api/workspaces", headers=auth_headers)

    assert response.status_code == 200
    assert [w["workspace_name"] for w in response.json()] == ["Alpha", "Beta"]
