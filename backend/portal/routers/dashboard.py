from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from portal.database import get_db
from portal.deps import get_today, get_workspace_id
from portal.schemas.crm import ContractResponse, ObligationResponse
from portal.schemas.dashboard import DashboardResponse
from portal.services import invoice_service
from portal.services.dashboard_service import load_dashboard

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse)
def get_dashboard(
    today: Optional[date] = Query(None, description="Reference date (YYYY-MM-DD), defaults to the server's today"),
    server_today: date = Depends(get_today),
    workspace_id: int = Depends(get_workspace_id),
    db: Session = Depends(get_db)
):
    """Overdue and due-soon obligations, unpaid invoices, contracts ending soon"""
    buckets = load_dashboard(db, workspace_id, today or server_today)
    names = invoice_service.sponsor_names(db, workspace_id)

    return DashboardResponse(
        today=buckets.today,
        overdue=[ObligationResponse.model_validate(o) for o in buckets.overdue],
        due_soon=[ObligationResponse.model_validate(o) for o in buckets.due_soon],
        unpaid_invoices=[invoice_service.to_list_response(i, names) for i in buckets.unpaid_invoices],
        contracts_ending=[ContractResponse.model_validate(c) for c in buckets.contracts_ending],
        sponsor_names=names,
    )
