"""
Seed script to generate a demo workspace with sponsors, contracts, contacts,
obligations and invoices.

Usage: python scripts/seed_data.py <owner-user-id>
The owner id is the identity provider user id that should see the workspace.
"""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.orm import Session
from portal.database import SessionLocal, engine, Base
from portal.models.workspace import Workspace, WorkspaceMember
from portal.models.sponsor import Sponsor
from portal.models.contract import Contract
from portal.models.contact import Contact
from portal.models.obligation import Obligation, OBLIGATION_TYPES
from portal.models.billing_profile import BillingProfile
from portal.schemas.invoice import InvoiceCreate, LineItemInput
from portal.services import invoice_service
from decimal import Decimal
from datetime import date, timedelta
from faker import Faker

fake = Faker()

SPONSOR_NAMES = ["Summit Hydration", "TrailForge Shoes", "Apex Nutrition", "Ridgeline Optics", "Northwind Apparel"]


def create_workspace(db: Session, owner_id: str) -> Workspace:
    workspace = Workspace(name=f"{fake.first_name()} {fake.last_name()} Racing")
    db.add(workspace)
    db.flush()
    db.add(WorkspaceMember(workspace_id=workspace.id, user_id=owner_id, role="owner"))
    db.add(BillingProfile(
        workspace_id=workspace.id,
        business_name=workspace.name,
        contact_name=fake.name(),
        email=fake.email(),
        phone=fake.phone_number(),
        address_line1=fake.street_address(),
        city=fake.city(),
        state=fake.state_abbr(),
        postal_code=fake.postcode(),
        country="USA",
        payment_method="ACH",
        bank_name=fake.company() + " Bank",
        account_name=workspace.name,
        account_number_last4=fake.numerify("####"),
        payment_instructions="Net 30. Reference the invoice number with your payment."
    ))
    db.commit()
    return workspace


def create_sponsors(db: Session, workspace: Workspace) -> list[Sponsor]:
    """Create sponsors, each with a contract and a billing contact"""
    sponsors = []
    today = date.today()
    for name in SPONSOR_NAMES:
        sponsor = Sponsor(workspace_id=workspace.id, name=name, notes=fake.sentence())
        db.add(sponsor)
        db.flush()

        start = today - timedelta(days=fake.random_int(min=60, max=300))
        db.add(Contract(
            workspace_id=workspace.id,
            sponsor_id=sponsor.id,
            start_date=start,
            end_date=today + timedelta(days=fake.random_int(min=10, max=200)),
            base_pay=Decimal(fake.random_int(min=5, max=60) * 1000),
            notes="Annual agreement"
        ))
        db.add(Contact(
            workspace_id=workspace.id,
            sponsor_id=sponsor.id,
            name=fake.name(),
            role="Billing",
            company=name,
            email=fake.email(),
            phone=fake.phone_number(),
            is_billing=True,
            last_touch_date=today - timedelta(days=fake.random_int(min=0, max=90))
        ))
        sponsors.append(sponsor)
    db.commit()
    return sponsors


def create_obligations(db: Session, workspace: Workspace, sponsors: list[Sponsor], count: int = 12) -> list[Obligation]:
    """Obligations spread around today so every dashboard bucket has entries"""
    obligations = []
    today = date.today()
    for _ in range(count):
        sponsor = fake.random_element(elements=sponsors)
        obligation = Obligation(
            workspace_id=workspace.id,
            sponsor_id=sponsor.id,
            title=fake.catch_phrase(),
            type=fake.random_element(elements=OBLIGATION_TYPES),
            status=fake.random_element(elements=("pending", "pending", "in_progress", "done")),
            due_date=today + timedelta(days=fake.random_int(min=-14, max=21))
        )
        db.add(obligation)
        obligations.append(obligation)
    db.commit()
    return obligations


def create_invoices(db: Session, workspace: Workspace, owner_id: str, sponsors: list[Sponsor]) -> list:
    """Invoices in every status, some sent long enough ago to be reminder candidates"""
    invoices = []
    today = date.today()
    scenarios = [
        ("draft", None),
        ("sent", 5),
        ("sent", 35),
        ("sent", 60),
        ("paid", 45),
        ("void", None),
    ]
    for i, (status, sent_days_ago) in enumerate(scenarios, start=1):
        sponsor = sponsors[i % len(sponsors)]
        items = [
            LineItemInput(
                description=fake.bs().capitalize(),
                quantity=str(fake.random_int(min=1, max=4)),
                unit_price=str(fake.random_int(min=250, max=3000))
            )
            for _ in range(fake.random_int(min=1, max=3))
        ]
        data = InvoiceCreate(
            invoice_number=f"INV-{today.year}-{str(i).zfill(4)}",
            sponsor_id=sponsor.id,
            status=status,
            sent_date=today - timedelta(days=sent_days_ago) if sent_days_ago else None,
            notes=fake.sentence() if i % 2 else None,
            items=items
        )
        invoices.append(invoice_service.create_invoice(db, workspace.id, owner_id, data, today))
    return invoices


def main():
    """Main seeding function"""
    if len(sys.argv) < 2:
        print("Usage: python scripts/seed_data.py <owner-user-id>")
        sys.exit(1)
    owner_id = sys.argv[1]

    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        print("Creating workspace...")
        workspace = create_workspace(db, owner_id)

        print("Creating sponsors...")
        sponsors = create_sponsors(db, workspace)

        print("Creating obligations...")
        obligations = create_obligations(db, workspace, sponsors)

        print("Creating invoices...")
        invoices = create_invoices(db, workspace, owner_id, sponsors)

        print("\nSeeding complete!")
        print(f"Summary for workspace {workspace.id} ({workspace.name}):")
        print(f"  - Sponsors: {len(sponsors)} (one contract and billing contact each)")
        print(f"  - Obligations: {len(obligations)}")
        print(f"  - Invoices: {len(invoices)}")

    except Exception as e:
        print(f"Error during seeding: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
