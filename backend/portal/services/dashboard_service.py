"""
Dashboard Aggregator - date-window projections over a workspace's records.

build_dashboard is pure: it never samples the clock and never touches the
database, so the same inputs always give the same buckets in the same order.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from portal.config import settings
from portal.models.contract import Contract
from portal.models.invoice import Invoice
from portal.models.obligation import Obligation, OPEN_OBLIGATION_STATUSES
from portal.utils.dates import add_days


@dataclass
class DashboardBuckets:
    today: date
    overdue: List[Obligation] = field(default_factory=list)
    due_soon: List[Obligation] = field(default_factory=list)
    unpaid_invoices: List[Invoice] = field(default_factory=list)
    contracts_ending: List[Contract] = field(default_factory=list)


def _is_open(obligation) -> bool:
    return obligation.status in OPEN_OBLIGATION_STATUSES


def build_dashboard(
    today: date,
    obligations: Iterable,
    invoices: Iterable,
    contracts: Iterable,
    due_soon_days: Optional[int] = None,
    contracts_ending_days: Optional[int] = None,
) -> DashboardBuckets:
    """
    Bucket records by date window relative to `today`.

    Windows are inclusive on both ends. An obligation due today is
    "due soon", never "overdue".
    """
    if due_soon_days is None:
        due_soon_days = settings.dashboard_due_soon_days
    if contracts_ending_days is None:
        contracts_ending_days = settings.dashboard_contracts_ending_days

    due_soon_end = add_days(today, due_soon_days)
    ending_end = add_days(today, contracts_ending_days)

    obligations = [o for o in obligations if o.due_date is not None and _is_open(o)]

    overdue = sorted(
        (o for o in obligations if o.due_date < today),
        key=lambda o: (o.due_date, o.id),
    )
    due_soon = sorted(
        (o for o in obligations if today <= o.due_date <= due_soon_end),
        key=lambda o: (o.due_date, o.id),
    )

    # sent_date descending, undated last, then id ascending
    unpaid = sorted(
        (i for i in invoices if i.status == "sent"),
        key=lambda i: (
            i.sent_date is None,
            -(i.sent_date.toordinal()) if i.sent_date else 0,
            i.id,
        ),
    )

    ending = sorted(
        (c for c in contracts if c.end_date is not None and today <= c.end_date <= ending_end),
        key=lambda c: (c.end_date, c.id),
    )

    return DashboardBuckets(
        today=today,
        overdue=overdue,
        due_soon=due_soon,
        unpaid_invoices=unpaid,
        contracts_ending=ending,
    )


def load_dashboard(db: Session, workspace_id: int, today: date) -> DashboardBuckets:
    """Read the workspace's collections and bucket them"""
    due_soon_end = add_days(today, settings.dashboard_due_soon_days)
    ending_end = add_days(today, settings.dashboard_contracts_ending_days)

    obligations = db.query(Obligation).filter(
        Obligation.workspace_id == workspace_id,
        Obligation.status.in_(OPEN_OBLIGATION_STATUSES),
        Obligation.due_date.isnot(None),
        Obligation.due_date <= due_soon_end
    ).all()

    invoices = db.query(Invoice).filter(
        Invoice.workspace_id == workspace_id,
        Invoice.status == "sent"
    ).all()

    contracts = db.query(Contract).filter(
        Contract.workspace_id == workspace_id,
        Contract.end_date >= today,
        Contract.end_date <= ending_end
    ).all()

    return build_dashboard(today, obligations, invoices, contracts)
