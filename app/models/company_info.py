from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from app.core.database import Base


class CompanyInfo(Base):
    __tablename__ = "company_info"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, unique=True, index=True)
    company_name = Column(String(255), nullable=False)
    company_address = Column(Text, nullable=False)
    phone_number = Column(String(32), nullable=False)
    email = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)
    working_hours = Column(String(255), nullable=True)
    logo_url = Column(Text, nullable=True)
    # PNG em data URL (data:image/png;base64,...)
    qr_code = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
