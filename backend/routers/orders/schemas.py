from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime, date
from enum import Enum


class OrderType(str, Enum):
    INDIVIDUAL = "individual"
    GROUP = "group"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ACCEPTED = "accepted"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OrderItemCreate(BaseModel):
    product_id: str
    quantity: float = Field(gt=0)


class OrderCreate(BaseModel):
    """
    A vendor's order. Line prices come from the catalogue at order time and
    total_amount is always derived: subtotal + tax + delivery_charge - group_discount.
    """
    model_config = ConfigDict(use_enum_values=True)

    supplier_id: Optional[str] = None
    order_type: OrderType = OrderType.INDIVIDUAL.value
    items: List[OrderItemCreate] = Field(min_length=1)
    tax: float = Field(default=0, ge=0)
    delivery_charge: float = Field(default=0, ge=0)
    group_discount: float = Field(default=0, ge=0)
    delivery_address: str = Field(min_length=1)
    delivery_date: Optional[date] = None
    notes: Optional[str] = None
    payment_method: Optional[str] = None
    customer_details: Optional[Dict[str, Any]] = None

    @field_validator("items")
    @classmethod
    def validate_unique_products(cls, v):
        product_ids = [item.product_id for item in v]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Each product may appear only once per order")
        return v


class OrderUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    supplier_id: Optional[str] = None
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    payment_method: Optional[str] = None
    payment_id: Optional[str] = None
    tax: Optional[float] = Field(None, ge=0)
    delivery_charge: Optional[float] = Field(None, ge=0)
    group_discount: Optional[float] = Field(None, ge=0)
    delivery_address: Optional[str] = Field(None, min_length=1)
    delivery_date: Optional[date] = None
    notes: Optional[str] = None


class OrderResponse(BaseModel):
    id: str
    vendor_id: str
    supplier_id: Optional[str] = None
    order_number: str
    order_type: str
    status: str
    payment_status: str
    payment_method: Optional[str] = None
    payment_id: Optional[str] = None
    total_amount: float
    subtotal: float
    tax: float
    delivery_charge: float
    group_discount: float
    delivery_address: str
    delivery_date: Optional[date] = None
    notes: Optional[str] = None
    items: List[Dict[str, Any]]
    customer_details: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime


class OrderItemResponse(BaseModel):
    id: str
    order_id: str
    product_id: str
    quantity: float
    unit_price: float
    total_price: float
    created_at: datetime


class OrderWithItemsResponse(OrderResponse):
    order_items: List[OrderItemResponse] = []


class OrderListResponse(BaseModel):
    orders: List[OrderResponse]
    page: int
    limit: int
    total: int
