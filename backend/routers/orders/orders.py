from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import Optional, List
from models import VendorProfile, SupplierProfile, Product, Order, OrderItem
from access import SecureAccess, get_access
from dependencies.caller import Caller
from routers.auth.auth import get_current_caller
from utils.errors import MarketplaceError, ReferentialIntegrityViolation
from utils.request_helpers import parse_uuid, not_found
from utils.response_helpers import safe_model_validate, safe_model_validate_list, row_to_dict, to_json_safe
from .schemas import (
    OrderCreate, OrderUpdate, OrderResponse, OrderItemResponse,
    OrderWithItemsResponse, OrderListResponse, OrderStatus, PaymentStatus
)
from .helpers import compute_order_total, line_total, generate_order_number, to_money, to_quantity
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])

MONEY_FIELDS = ("tax", "delivery_charge", "group_discount")


def _with_items(order: Order, items) -> OrderWithItemsResponse:
    data = row_to_dict(order)
    data["order_items"] = [row_to_dict(item) for item in items]
    return safe_model_validate(OrderWithItemsResponse, data)


# =================
# VENDOR ORDER ROUTES
# =================

@router.post("/", response_model=OrderWithItemsResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """Place an order with its line items in a single transaction"""
    try:
        vendor = await access.own_profile(caller, VendorProfile)
        if vendor is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="A vendor profile is required to place orders"
            )

        supplier_id = parse_uuid(order_data.supplier_id, "supplier ID") if order_data.supplier_id else None

        # Price every line from the catalogue as it stands now
        lines = []
        for item in order_data.items:
            product_id = parse_uuid(item.product_id, "product ID")
            product = await access.get(caller, Product, product_id)
            if product is None:
                raise ReferentialIntegrityViolation(
                    "order_items_product_id_fkey",
                    message=f"product_id={product_id} is not present in table \"products\""
                )
            quantity = to_quantity(item.quantity)
            lines.append({
                "product": product,
                "quantity": quantity,
                "unit_price": product.price_per_unit,
                "total_price": line_total(product.price_per_unit, quantity),
            })

        subtotal = sum((line["total_price"] for line in lines), to_money(0))
        total_amount = compute_order_total(
            subtotal, order_data.tax, order_data.delivery_charge, order_data.group_discount
        )

        snapshot = [
            {
                "product_id": line["product"].id,
                "name": line["product"].name,
                "unit": line["product"].unit,
                "quantity": line["quantity"],
                "unit_price": line["unit_price"],
                "total_price": line["total_price"],
            }
            for line in lines
        ]

        order = await access.insert(caller, Order, {
            "vendor_id": vendor.id,
            "supplier_id": supplier_id,
            "order_number": generate_order_number(access.clock()),
            "order_type": order_data.order_type,
            "subtotal": subtotal,
            "tax": order_data.tax,
            "delivery_charge": order_data.delivery_charge,
            "group_discount": order_data.group_discount,
            "total_amount": total_amount,
            "delivery_address": order_data.delivery_address,
            "delivery_date": order_data.delivery_date,
            "notes": order_data.notes,
            "payment_method": order_data.payment_method,
            "items": to_json_safe(snapshot),
            "customer_details": to_json_safe(order_data.customer_details),
        })

        order_items = []
        for line in lines:
            order_items.append(await access.insert(caller, OrderItem, {
                "order_id": order.id,
                "product_id": line["product"].id,
                "quantity": line["quantity"],
                "unit_price": line["unit_price"],
                "total_price": line["total_price"],
            }))

        await access.db.commit()
        logger.info(f"Order {order.order_number} placed by vendor {vendor.id} ({len(order_items)} items)")

        return _with_items(order, order_items)

    except (HTTPException, MarketplaceError):
        raise
    except Exception as e:
        logger.error(f"Error creating order: {str(e)}")
        await access.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create order"
        )


@router.get("/", response_model=OrderListResponse)
async def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    payment_status: Optional[PaymentStatus] = Query(None),
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """Every order the caller may see: placed, assigned, or open to suppliers"""
    criteria = []
    if status_filter:
        criteria.append(Order.status == status_filter.value)
    if payment_status:
        criteria.append(Order.payment_status == payment_status.value)

    total = await access.count(caller, Order, *criteria)
    orders = await access.select(
        caller,
        Order,
        *criteria,
        order_by=(Order.created_at.desc(),),
        offset=(page - 1) * limit,
        limit=limit
    )

    return OrderListResponse(
        orders=safe_model_validate_list(OrderResponse, orders),
        page=page,
        limit=limit,
        total=total
    )


# =================
# SUPPLIER ORDER ROUTES
# =================

@router.get("/open-pool", response_model=OrderListResponse)
async def list_open_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """Unassigned orders any registered supplier can discover"""
    supplier = await access.own_profile(caller, SupplierProfile)
    if supplier is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="A supplier profile is required to browse open orders"
        )

    criteria = [Order.supplier_id.is_(None)]
    total = await access.count(caller, Order, *criteria)
    orders = await access.select(
        caller,
        Order,
        *criteria,
        order_by=(Order.created_at.desc(),),
        offset=(page - 1) * limit,
        limit=limit
    )

    return OrderListResponse(
        orders=safe_model_validate_list(OrderResponse, orders),
        page=page,
        limit=limit,
        total=total
    )


@router.get("/{order_id}", response_model=OrderWithItemsResponse)
async def get_order(
    order_id: str,
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """Get an order with the line items the caller may see"""
    order_uuid = parse_uuid(order_id, "order ID")
    order = await access.get(caller, Order, order_uuid)
    if order is None:
        raise not_found("Order")

    items = await access.select(caller, OrderItem, OrderItem.order_id == order_uuid, order_by=(OrderItem.created_at,))
    return _with_items(order, items)


@router.get("/{order_id}/items", response_model=List[OrderItemResponse])
async def get_order_items(
    order_id: str,
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """Line items of one order"""
    order_uuid = parse_uuid(order_id, "order ID")
    if await access.get(caller, Order, order_uuid) is None:
        raise not_found("Order")

    items = await access.select(caller, OrderItem, OrderItem.order_id == order_uuid, order_by=(OrderItem.created_at,))
    return safe_model_validate_list(OrderItemResponse, items)


@router.put("/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: str,
    order_update: OrderUpdate,
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """
    Vendors edit their orders while pending; the assigned supplier moves
    status and payment fields forward.
    """
    try:
        order_uuid = parse_uuid(order_id, "order ID")
        changes = order_update.model_dump(exclude_unset=True)

        if changes.get("supplier_id"):
            changes["supplier_id"] = parse_uuid(changes["supplier_id"], "supplier ID")

        if any(field in changes for field in MONEY_FIELDS):
            current = await access.get(caller, Order, order_uuid)
            if current is None:
                raise not_found("Order")
            merged = {field: changes.get(field, getattr(current, field)) for field in MONEY_FIELDS}
            changes["total_amount"] = compute_order_total(current.subtotal, **merged)

        order = await access.update(caller, Order, order_uuid, changes)
        if order is None:
            raise not_found("Order")
        await access.db.commit()

        return safe_model_validate(OrderResponse, order)

    except (HTTPException, MarketplaceError):
        raise
    except Exception as e:
        logger.error(f"Error updating order: {str(e)}")
        await access.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update order"
        )
