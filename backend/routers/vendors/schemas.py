from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class VendorCreate(BaseModel):
    business_name: str = Field(..., min_length=1)
    owner_name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1, max_length=20)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    pincode: str = Field(..., min_length=1, max_length=10)
    business_type: str = Field(default="street_food", min_length=1)
    gst_number: Optional[str] = None


class VendorUpdate(BaseModel):
    business_name: Optional[str] = Field(None, min_length=1)
    owner_name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = Field(None, min_length=1, max_length=20)
    address: Optional[str] = Field(None, min_length=1)
    city: Optional[str] = Field(None, min_length=1)
    state: Optional[str] = Field(None, min_length=1)
    pincode: Optional[str] = Field(None, min_length=1, max_length=10)
    business_type: Optional[str] = Field(None, min_length=1)
    gst_number: Optional[str] = None


class VendorResponse(BaseModel):
    id: str
    user_id: str
    business_name: str
    owner_name: str
    phone: str
    address: str
    city: str
    state: str
    pincode: str
    business_type: str
    gst_number: Optional[str] = None
    created_at: datetime
    updated_at: datetime
