from pydantic import BaseModel
from typing import Dict, List
from datetime import date

from portal.schemas.crm import ContractResponse, ObligationResponse
from portal.schemas.invoice import InvoiceListResponse


class DashboardResponse(BaseModel):
    today: date
    overdue: List[ObligationResponse] = []
    due_soon: List[ObligationResponse] = []
    unpaid_invoices: List[InvoiceListResponse] = []
    contracts_ending: List[ContractResponse] = []
    sponsor_names: Dict[int, str] = {}
