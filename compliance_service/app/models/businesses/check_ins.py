import uuid
from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import relationship
from shared.core.database import Base


class CheckIn(Base):
    __tablename__ = "check_ins"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id = Column(Uuid, ForeignKey("businesses.id"),
                         nullable=False, index=True)
    officer_id = Column(Uuid, nullable=False)
    check_in_date = Column(DateTime(timezone=True), nullable=False)
    location_geo = Column(String(128))
    phone = Column(String(64))
    fine = Column(Numeric(12, 2), default=0)
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="check_ins")
    case = relationship("Case", back_populates="check_in", uselist=False)
