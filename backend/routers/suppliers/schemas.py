from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime


class SupplierCreate(BaseModel):
    business_name: str = Field(..., min_length=1)
    owner_name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1, max_length=20)
    email: EmailStr
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    pincode: str = Field(..., min_length=1, max_length=10)
    gst_number: Optional[str] = None
    fssai_license: Optional[str] = None


class SupplierUpdate(BaseModel):
    business_name: Optional[str] = Field(None, min_length=1)
    owner_name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = Field(None, min_length=1, max_length=20)
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(None, min_length=1)
    city: Optional[str] = Field(None, min_length=1)
    state: Optional[str] = Field(None, min_length=1)
    pincode: Optional[str] = Field(None, min_length=1, max_length=10)
    gst_number: Optional[str] = None
    fssai_license: Optional[str] = None


class SupplierResponse(BaseModel):
    id: str
    user_id: str
    business_name: str
    owner_name: str
    phone: str
    email: str
    address: str
    city: str
    state: str
    pincode: str
    gst_number: Optional[str] = None
    fssai_license: Optional[str] = None
    rating: float
    total_reviews: int
    created_at: datetime
    updated_at: datetime


class SupplierListResponse(BaseModel):
    suppliers: List[SupplierResponse]
    page: int
    limit: int
    total: int
