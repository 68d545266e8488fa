from pydantic import BaseModel, Field
from typing import Optional, List, Union
from datetime import date, datetime
from decimal import Decimal

STATUS_PATTERN = "^(draft|sent|paid|void)$"


class LineItemInput(BaseModel):
    """A raw line item as typed into the invoice form"""
    description: Optional[str] = ""
    quantity: Union[str, int, float, None] = None
    unit_price: Union[str, int, float, None] = None


class InvoiceCreate(BaseModel):
    invoice_number: Optional[str] = None
    sponsor_id: Optional[int] = None
    contract_id: Optional[int] = None
    status: str = Field("draft", pattern=STATUS_PATTERN)
    sent_date: Optional[date] = None
    paid_date: Optional[date] = None
    notes: Optional[str] = None
    items: List[LineItemInput] = []


class InvoiceUpdate(InvoiceCreate):
    """Full edit form; the submitted items replace the stored set"""
    pass


class InvoiceStatusUpdate(BaseModel):
    status: str = Field(..., pattern=STATUS_PATTERN)


class InvoiceItemResponse(BaseModel):
    id: int
    line_no: int
    description: str
    quantity: Decimal
    unit_price: Decimal

    class Config:
        from_attributes = True


class InvoiceListResponse(BaseModel):
    id: int
    invoice_number: Optional[str]
    sponsor_id: Optional[int]
    sponsor_name: Optional[str] = None
    contract_id: Optional[int]
    amount: Decimal
    status: str
    sent_date: Optional[date]
    paid_date: Optional[date]
    notes: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class InvoiceResponse(InvoiceListResponse):
    reminder_sent_at: Optional[datetime]
    created_by: Optional[str]
    updated_at: Optional[datetime]
    items: List[InvoiceItemResponse] = []
