from sqlalchemy import Column, Date, Integer, String
from shared.core.database import Base


class SequenceCounter(Base):
    """Per-day counter behind the BIZ/TAX/REG/CASE identifiers."""

    __tablename__ = "sequence_counters"

    name = Column(String(16), primary_key=True)
    sequence_date = Column(Date, primary_key=True)
    value = Column(Integer, nullable=False, default=0)
