"""
Shared fixtures: an in-memory SQLite database, a fake identity provider and a
recording email sender wired into the FastAPI app through dependency
overrides.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["REMINDER_FROM_EMAIL"] = "reminders@example.com"

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import portal.models  # noqa: F401
from portal.database import Base, get_db
from portal.deps import get_email_sender, get_identity, get_today
from portal.errors import AuthorizationError, DependencyError, EmailDeliveryError
from portal.main import app
from portal.models.contract import Contract
from portal.models.sponsor import Sponsor
from portal.models.workspace import Workspace, WorkspaceMember
from portal.schemas.invoice import InvoiceCreate, LineItemInput
from portal.services.identity_service import AuthenticatedUser

TODAY = date(2026, 3, 15)
OWNER_ID = "user-owner"
OWNER_TOKEN = "token-owner"
OWNER_EMAIL = "owner@example.com"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeIdentity:
    """Stands in for the identity provider; tokens map straight to users"""

    def __init__(self, users=None, emails=None, fail_listing=False):
        self.users = users or {}
        self.emails = emails or {}
        self.fail_listing = fail_listing
        self.listing_calls = 0

    def get_user(self, token):
        if token not in self.users:
            raise AuthorizationError("Invalid token")
        return self.users[token]

    def list_user_emails(self):
        self.listing_calls += 1
        if self.fail_listing:
            raise DependencyError("Identity provider unavailable")
        return dict(self.emails)


class RecordingEmailSender:
    def __init__(self, fail=False, fail_for=()):
        self.fail = fail
        self.fail_for = set(fail_for)
        self.attempts = []
        self.sent = []

    def send_email(self, from_email, to, subject, html):
        self.attempts.append({"from": from_email, "to": to, "subject": subject, "html": html})
        if self.fail or to in self.fail_for:
            raise EmailDeliveryError("Email provider returned 500")
        self.sent.append(self.attempts[-1])
        return {"message_id": f"msg-{len(self.sent)}", "success": True}


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def identity():
    return FakeIdentity(
        users={OWNER_TOKEN: AuthenticatedUser(id=OWNER_ID, email=OWNER_EMAIL)},
        emails={OWNER_ID: OWNER_EMAIL},
    )


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def client(db, identity, email_sender):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity] = lambda: identity
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_today] = lambda: TODAY
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {OWNER_TOKEN}"}


@pytest.fixture
def workspace(db):
    workspace = Workspace(name="Test Racing")
    db.add(workspace)
    db.flush()
    db.add(WorkspaceMember(workspace_id=workspace.id, user_id=OWNER_ID, role="owner"))
    db.commit()
    db.refresh(workspace)
    return workspace


@pytest.fixture
def sponsor(db, workspace):
    sponsor = Sponsor(workspace_id=workspace.id, name="Summit Hydration")
    db.add(sponsor)
    db.commit()
    db.refresh(sponsor)
    return sponsor


@pytest.fixture
def contract(db, workspace, sponsor):
    contract = Contract(
        workspace_id=workspace.id,
        sponsor_id=sponsor.id,
        start_date=date(2026, 1, 1),
        end_date=date(2026, 12, 31),
        base_pay=Decimal("12000.00"),
    )
    db.add(contract)
    db.commit()
    db.refresh(contract)
    return contract


def make_invoice_data(items=None, **fields) -> InvoiceCreate:
    if items is None:
        items = [{"description": "Race kit placement", "quantity": "2", "unit_price": "150"}]
    return InvoiceCreate(items=[LineItemInput(**item) for item in items], **fields)
