from datetime import date, timedelta
from types import SimpleNamespace

from portal.models.contract import Contract
from portal.models.invoice import Invoice
from portal.models.obligation import Obligation
from portal.services.dashboard_service import build_dashboard, load_dashboard

TODAY = date(2026, 3, 15)


def _days(n):
    return TODAY + timedelta(days=n)


def obligation(id, due, status="pending"):
    return SimpleNamespace(id=id, due_date=due, status=status)


def invoice(id, status="sent", sent_date=None):
    return SimpleNamespace(id=id, status=status, sent_date=sent_date)


def contract(id, end_date):
    return SimpleNamespace(id=id, end_date=end_date)


class TestBuildDashboard:
    def test_due_today_is_due_soon_not_overdue(self):
        result = build_dashboard(TODAY, [obligation(1, TODAY)], [], [], due_soon_days=7)

        assert result.overdue == []
        assert [o.id for o in result.due_soon] == [1]

    def test_obligation_windows_are_inclusive(self):
        obligations = [
            obligation(1, _days(-1)),
            obligation(2, _days(7)),
            obligation(3, _days(8)),
            obligation(4, None),
        ]

        result = build_dashboard(TODAY, obligations, [], [], due_soon_days=7)

        assert [o.id for o in result.overdue] == [1]
        assert [o.id for o in result.due_soon] == [2]

    def test_closed_obligations_excluded(self):
        obligations = [
            obligation(1, _days(-3), status="done"),
            obligation(2, _days(-3), status="skipped"),
            obligation(3, _days(-3), status="in_progress"),
        ]

        result = build_dashboard(TODAY, obligations, [], [], due_soon_days=7)

        assert [o.id for o in result.overdue] == [3]

    def test_ordering_by_date_then_id(self):
        obligations = [obligation(5, _days(-2)), obligation(2, _days(-2)), obligation(9, _days(-5))]

        result = build_dashboard(TODAY, obligations, [], [], due_soon_days=7)

        assert [o.id for o in result.overdue] == [9, 2, 5]

    def test_unpaid_newest_sent_first_undated_last(self):
        invoices = [
            invoice(1, sent_date=_days(-40)),
            invoice(2, sent_date=None),
            invoice(3, sent_date=_days(-2)),
            invoice(4, status="paid", sent_date=_days(-1)),
            invoice(5, status="draft"),
        ]

        result = build_dashboard(TODAY, [], invoices, [], due_soon_days=7)

        assert [i.id for i in result.unpaid_invoices] == [3, 1, 2]

    def test_contracts_ending_window(self):
        contracts = [
            contract(1, _days(-1)),
            contract(2, TODAY),
            contract(3, _days(60)),
            contract(4, _days(61)),
            contract(5, None),
        ]

        result = build_dashboard(TODAY, [], [], contracts, contracts_ending_days=60)

        assert [c.id for c in result.contracts_ending] == [2, 3]

    def test_same_inputs_same_output(self):
        obligations = [obligation(i, _days(i - 5)) for i in range(10)]

        first = build_dashboard(TODAY, obligations, [], [], due_soon_days=7)
        second = build_dashboard(TODAY, list(reversed(obligations)), [], [], due_soon_days=7)

        assert [o.id for o in first.overdue] == [o.id for o in second.overdue]
        assert [o.id for o in first.due_soon] == [o.id for o in second.due_soon]


def test_load_dashboard_scopes_to_workspace(db, workspace, sponsor):
    db.add_all([
        Obligation(workspace_id=workspace.id, title="Race report", due_date=_days(-1)),
        Obligation(workspace_id=workspace.id, title="Photo shoot", due_date=_days(3)),
        Obligation(workspace_id=workspace.id + 1, title="Elsewhere", due_date=_days(-1)),
        Invoice(workspace_id=workspace.id, status="sent", sent_date=_days(-10), amount=100),
        Invoice(workspace_id=workspace.id, status="draft", amount=50),
        Contract(workspace_id=workspace.id, sponsor_id=sponsor.id, end_date=_days(30)),
    ])
    db.commit()

    result = load_dashboard(db, workspace.id, TODAY)

    assert [o.title for o in result.overdue] == ["Race report"]
    assert [o.title for o in result.due_soon] == ["Photo shoot"]
    assert len(result.unpaid_invoices) == 1
    assert len(result.contracts_ending) == 1
