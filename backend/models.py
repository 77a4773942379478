from sqlalchemy import (
    Boolean,
    String,
    Text,
    DateTime,
    Date,
    Numeric,
    Float,
    Integer,
    JSON,
    Uuid,
    CheckConstraint,
    UniqueConstraint,
    Index,
    text,
    ForeignKey,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.ext.declarative import declarative_base
from typing import Optional, List
from decimal import Decimal
from datetime import datetime, date
import uuid
import os

Base = declarative_base()

# Supabase keeps accounts in the "auth" schema; databases without schemas set AUTH_SCHEMA=""
AUTH_SCHEMA = os.getenv("AUTH_SCHEMA", "auth") or None
AUTH_USERS_ID = f"{AUTH_SCHEMA}.users.id" if AUTH_SCHEMA else "users.id"

JSONType = JSON().with_variant(JSONB(), "postgresql")

ORDER_STATUSES = ("pending", "confirmed", "delivered", "cancelled", "accepted", "completed")
PAYMENT_STATUSES = ("pending", "completed", "failed")
ORDER_TYPES = ("individual", "group")
PRODUCT_GROUP_STATUSES = ("active", "accepted", "declined", "delivered", "expired")


def _in_list(column: str, values) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


class Users(Base):
    """
    Supabase auth.users table schema (only the columns this backend touches)
    This mirrors the Supabase authentication table to enable proper foreign key relationships
    """
    __tablename__ = "users"
    __table_args__ = (
        {
            "comment": "Auth: Stores user login data within a secure schema.",
            "schema": AUTH_SCHEMA,
        },
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    is_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(True))


class VendorProfile(Base):
    """
    Vendor (street food business) profile, one per account
    """
    __tablename__ = "vendors"
    __table_args__ = (
        UniqueConstraint("user_id", name="vendors_user_id_key"),
        Index("idx_vendors_user_id", "user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey(AUTH_USERS_ID, ondelete="CASCADE"),
        nullable=False
    )

    business_name: Mapped[str] = mapped_column(Text, nullable=False)
    owner_name: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(Text, nullable=False)

    # Location Information
    address: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(Text, nullable=False)
    state: Mapped[str] = mapped_column(Text, nullable=False)
    pincode: Mapped[str] = mapped_column(Text, nullable=False)

    business_type: Mapped[str] = mapped_column(Text, nullable=False, default="street_food", server_default="street_food")
    gst_number: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    orders: Mapped[List["Order"]] = relationship(
        "Order",
        back_populates="vendor",
        passive_deletes=True
    )


class SupplierProfile(Base):
    """
    Supplier profile, one per account; publicly browsable
    """
    __tablename__ = "suppliers"
    __table_args__ = (
        UniqueConstraint("user_id", name="suppliers_user_id_key"),
        CheckConstraint("rating >= 0 AND rating <= 5", name="suppliers_rating_check"),
        CheckConstraint("total_reviews >= 0", name="suppliers_total_reviews_check"),
        Index("idx_suppliers_user_id", "user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey(AUTH_USERS_ID, ondelete="CASCADE"),
        nullable=False
    )

    business_name: Mapped[str] = mapped_column(Text, nullable=False)
    owner_name: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)

    # Location Information
    address: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(Text, nullable=False)
    state: Mapped[str] = mapped_column(Text, nullable=False)
    pincode: Mapped[str] = mapped_column(Text, nullable=False)

    # Business Credentials
    gst_number: Mapped[Optional[str]] = mapped_column(Text)
    fssai_license: Mapped[Optional[str]] = mapped_column(Text)

    # Rating System
    rating: Mapped[Decimal] = mapped_column(Numeric(2, 1), nullable=False, default=Decimal("0"), server_default="0")
    total_reviews: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    products: Mapped[List["Product"]] = relationship(
        "Product",
        back_populates="supplier",
        passive_deletes=True
    )
    product_groups: Mapped[List["ProductGroup"]] = relationship(
        "ProductGroup",
        back_populates="creator",
        passive_deletes=True
    )


Index("idx_suppliers_rating", SupplierProfile.rating.desc())


class Product(Base):
    """
    Raw materials offered by a supplier
    """
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price_per_unit >= 0", name="products_price_per_unit_check"),
        CheckConstraint("min_order_quantity > 0", name="products_min_order_quantity_check"),
        Index("idx_products_supplier_id", "supplier_id"),
        Index("idx_products_category", "category"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    supplier_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("suppliers.id", ondelete="CASCADE"),
        nullable=False
    )

    name: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)  # e.g. "vegetables", "grains"
    unit: Mapped[str] = mapped_column(Text, nullable=False)  # e.g. "kg", "liter"

    # Pricing
    price_per_unit: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    min_order_quantity: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("1"), server_default="1")

    stock_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=text("true"))
    description: Mapped[Optional[str]] = mapped_column(Text)
    image_url: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    supplier: Mapped["SupplierProfile"] = relationship("SupplierProfile", back_populates="products")


class Order(Base):
    """
    Order placed by a vendor; supplier_id stays NULL until a supplier is assigned
    """
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("order_number", name="orders_order_number_key"),
        CheckConstraint(_in_list("order_type", ORDER_TYPES), name="orders_order_type_check"),
        CheckConstraint(_in_list("status", ORDER_STATUSES), name="orders_status_check"),
        CheckConstraint(_in_list("payment_status", PAYMENT_STATUSES), name="orders_payment_status_check"),
        CheckConstraint("total_amount >= 0", name="orders_total_amount_check"),
        CheckConstraint("subtotal >= 0", name="orders_subtotal_check"),
        CheckConstraint("tax >= 0", name="orders_tax_check"),
        CheckConstraint("delivery_charge >= 0", name="orders_delivery_charge_check"),
        CheckConstraint("group_discount >= 0", name="orders_group_discount_check"),
        Index("idx_orders_vendor_id", "vendor_id"),
        Index("idx_orders_supplier_id", "supplier_id"),
        Index("idx_orders_status", "status"),
        Index("idx_orders_payment_status", "payment_status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    vendor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("vendors.id", ondelete="CASCADE"),
        nullable=False
    )
    supplier_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("suppliers.id", ondelete="CASCADE")
    )

    order_number: Mapped[str] = mapped_column(Text, nullable=False)
    order_type: Mapped[str] = mapped_column(Text, nullable=False)  # individual, group
    status: Mapped[str] = mapped_column(Text, nullable=False, default="pending", server_default="pending")

    # Payment (passive, no processing here)
    payment_status: Mapped[str] = mapped_column(Text, nullable=False, default="pending", server_default="pending")
    payment_method: Mapped[Optional[str]] = mapped_column(Text)
    payment_id: Mapped[Optional[str]] = mapped_column(Text)

    # Money; total_amount is the authoritative charge
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"), server_default="0")
    tax: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"), server_default="0")
    delivery_charge: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"), server_default="0")
    group_discount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"), server_default="0")

    delivery_address: Mapped[str] = mapped_column(Text, nullable=False)
    delivery_date: Mapped[Optional[date]] = mapped_column(Date)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    # Snapshots taken at order time
    items: Mapped[list] = mapped_column(JSONType, nullable=False)
    customer_details: Mapped[Optional[dict]] = mapped_column(JSONType)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    vendor: Mapped["VendorProfile"] = relationship("VendorProfile", back_populates="orders")
    order_items: Mapped[List["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        passive_deletes=True
    )


class OrderItem(Base):
    """
    Line item with the price captured at purchase time; never updated
    """
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="order_items_quantity_check"),
        CheckConstraint("unit_price >= 0", name="order_items_unit_price_check"),
        CheckConstraint("total_price >= 0", name="order_items_total_price_check"),
        Index("idx_order_items_order_id", "order_id"),
        Index("idx_order_items_product_id", "product_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="RESTRICT", name="order_items_product_id_fkey"),
        nullable=False
    )

    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    order: Mapped["Order"] = relationship("Order", back_populates="order_items")


class ProductGroup(Base):
    """
    Time-boxed bulk discount offer created by a supplier
    """
    __tablename__ = "product_groups"
    __table_args__ = (
        CheckConstraint(_in_list("status", PRODUCT_GROUP_STATUSES), name="product_groups_status_check"),
        CheckConstraint("quantity > 0", name="product_groups_quantity_check"),
        CheckConstraint("price >= 0", name="product_groups_price_check"),
        CheckConstraint("actual_rate >= 0", name="product_groups_actual_rate_check"),
        CheckConstraint("final_rate >= 0", name="product_groups_final_rate_check"),
        CheckConstraint(
            "discount_percentage >= 0 AND discount_percentage <= 100",
            name="product_groups_discount_percentage_check"
        ),
        CheckConstraint("estimated_value >= 0", name="product_groups_estimated_value_check"),
        CheckConstraint("latitude >= -90 AND latitude <= 90", name="product_groups_latitude_check"),
        CheckConstraint("longitude >= -180 AND longitude <= 180", name="product_groups_longitude_check"),
        CheckConstraint("vendors >= 0", name="product_groups_vendors_check"),
        Index("idx_product_groups_created_by", "created_by"),
        Index("idx_product_groups_status", "status"),
        Index("idx_product_groups_deadline", "deadline"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    created_by: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("suppliers.id", ondelete="CASCADE"),
        nullable=False
    )

    product: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    actual_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    final_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    estimated_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))

    location: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)

    deadline: Mapped[datetime] = mapped_column(DateTime(True), nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="active", server_default="active")
    vendors: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")  # participants so far

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    creator: Mapped["SupplierProfile"] = relationship("SupplierProfile", back_populates="product_groups")
