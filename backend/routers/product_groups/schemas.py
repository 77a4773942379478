from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum


class ProductGroupStatus(str, Enum):
    ACTIVE = "active"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    DELIVERED = "delivered"
    EXPIRED = "expired"


class ProductGroupCreate(BaseModel):
    product: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)
    price: float = Field(..., ge=0)
    actual_rate: float = Field(..., ge=0)
    final_rate: float = Field(..., ge=0)
    discount_percentage: float = Field(..., ge=0, le=100)
    estimated_value: Optional[float] = Field(None, ge=0)
    location: str = Field(..., min_length=1)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    deadline: datetime

    @model_validator(mode="after")
    def validate_rates(self):
        if self.final_rate > self.actual_rate:
            raise ValueError("final_rate cannot exceed actual_rate")
        return self


class ProductGroupUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    product: Optional[str] = Field(None, min_length=1)
    quantity: Optional[float] = Field(None, gt=0)
    price: Optional[float] = Field(None, ge=0)
    actual_rate: Optional[float] = Field(None, ge=0)
    final_rate: Optional[float] = Field(None, ge=0)
    discount_percentage: Optional[float] = Field(None, ge=0, le=100)
    estimated_value: Optional[float] = Field(None, ge=0)
    location: Optional[str] = Field(None, min_length=1)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    deadline: Optional[datetime] = None
    status: Optional[ProductGroupStatus] = None
    vendors: Optional[int] = Field(None, ge=0)


class ProductGroupResponse(BaseModel):
    id: str
    created_by: str
    product: str
    quantity: float
    price: float
    actual_rate: float
    final_rate: float
    discount_percentage: float
    estimated_value: Optional[float] = None
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    deadline: datetime
    status: str
    vendors: int
    created_at: datetime
    updated_at: datetime


class ProductGroupListResponse(BaseModel):
    product_groups: List[ProductGroupResponse]
    page: int
    limit: int
    total: int


class ExpireOverdueResponse(BaseModel):
    expired_count: int
    expired_ids: List[str]
