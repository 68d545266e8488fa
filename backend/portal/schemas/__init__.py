from portal.schemas.invoice import (
    LineItemInput,
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceStatusUpdate,
    InvoiceItemResponse,
    InvoiceResponse,
    InvoiceListResponse,
)
from portal.schemas.dashboard import DashboardResponse
from portal.schemas.reminder import ReminderRunResponse

__all__ = [
    "LineItemInput",
    "InvoiceCreate",
    "InvoiceUpdate",
    "InvoiceStatusUpdate",
    "InvoiceItemResponse",
    "InvoiceResponse",
    "InvoiceListResponse",
    "DashboardResponse",
    "ReminderRunResponse",
]
