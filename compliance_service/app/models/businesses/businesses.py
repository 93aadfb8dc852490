import uuid
from sqlalchemy import Column, DateTime, Index, String, Uuid, func
from sqlalchemy.orm import relationship
from shared.core.database import Base


class Business(Base):
    __tablename__ = "businesses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # BIZ-YYYYMMDD-NNNN
    business_id = Column(String(32), unique=True, index=True)
    business_name = Column(String(255), nullable=False)
    owner_name = Column(String(255))
    address = Column(String(500))
    contact_phone = Column(String(64))
    contact_email = Column(String(255))
    business_type = Column(String(128))
    # owned by the business-type catalogue
    business_type_id = Column(Uuid, nullable=True, index=True)
    tax_id = Column(String(64), index=True)
    registration_number = Column(String(64))
    state = Column(String(128))
    district = Column(String(128))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    check_ins = relationship("CheckIn", back_populates="business")

    __table_args__ = (
        Index("ix_business_name_owner", "business_name", "owner_name"),
    )
