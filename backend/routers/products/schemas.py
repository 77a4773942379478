from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1, max_length=100)
    unit: str = Field(..., min_length=1, max_length=50)
    price_per_unit: float = Field(..., ge=0)
    min_order_quantity: float = Field(1, gt=0)
    stock_available: bool = True
    description: Optional[str] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    unit: Optional[str] = Field(None, min_length=1, max_length=50)
    price_per_unit: Optional[float] = Field(None, ge=0)
    min_order_quantity: Optional[float] = Field(None, gt=0)
    stock_available: Optional[bool] = None
    description: Optional[str] = None


class ProductResponse(BaseModel):
    id: str
    supplier_id: str
    name: str
    category: str
    unit: str
    price_per_unit: float
    min_order_quantity: float
    stock_available: bool
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    """Response schema for product listing"""
    products: List[ProductResponse]
    page: int
    limit: int
    total: int


class ProductImageUpload(BaseModel):
    """Response schema for product image upload"""
    image_url: str
    message: str
