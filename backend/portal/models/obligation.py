from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Date
from sqlalchemy.sql import func
from portal.database import Base

OBLIGATION_TYPES = ("content", "race", "appearance", "invoice", "admin")
OBLIGATION_STATUSES = ("pending", "in_progress", "done", "skipped")
OPEN_OBLIGATION_STATUSES = ("pending", "in_progress")


class Obligation(Base):
    __tablename__ = "obligations"

    id = Column(Integer, primary_key=True, index=True)
    workspace_id = Column(Integer, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    type = Column(String, nullable=False, default="content")  # content, race, appearance, invoice, admin
    due_date = Column(Date, nullable=True, index=True)
    status = Column(String, nullable=False, default="pending", index=True)  # pending, in_progress, done, skipped
    sponsor_id = Column(Integer, ForeignKey("sponsors.id", ondelete="SET NULL"), nullable=True)
    contract_id = Column(Integer, ForeignKey("contracts.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
