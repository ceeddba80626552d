from sqlalchemy import Column, DateTime, ForeignKey, Integer, func

from app.core.database import Base


class VisitorCounter(Base):
    __tablename__ = "visitor_counters"

    tenant_id = Column(Integer, ForeignKey("tenants.id"), primary_key=True)
    count = Column(Integer, nullable=False, default=0)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
