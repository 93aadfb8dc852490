from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field


# ---------------- Base Business ----------------
class BusinessBase(BaseModel):
    business_name: str = Field(min_length=1)
    owner_name: Optional[str] = None
    address: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    business_type: Optional[str] = None
    business_type_id: Optional[UUID] = None
    tax_id: Optional[str] = None
    registration_number: Optional[str] = None
    state: Optional[str] = None
    district: Optional[str] = None


class BusinessCreate(BusinessBase):
    pass


# ---------------- Business Output ----------------
class BusinessOut(BusinessBase):
    id: UUID
    business_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }
