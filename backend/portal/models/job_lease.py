from sqlalchemy import Column, String, DateTime
from portal.database import Base


class JobLease(Base):
    """Time-bounded claim preventing overlapping runs of a scheduled job"""
    __tablename__ = "job_leases"

    name = Column(String, primary_key=True)
    holder = Column(String, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
