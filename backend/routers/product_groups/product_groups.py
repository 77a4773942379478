from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from typing import Optional
from models import ProductGroup, SupplierProfile
from access import SecureAccess, get_access
from dependencies.caller import Caller
from routers.auth.auth import get_current_caller, get_optional_caller, get_service_caller
from utils.errors import MarketplaceError, ConstraintViolation
from utils.request_helpers import parse_uuid, not_found
from utils.response_helpers import safe_model_validate, safe_model_validate_list
from .schemas import (
    ProductGroupCreate, ProductGroupUpdate, ProductGroupResponse,
    ProductGroupListResponse, ProductGroupStatus, ExpireOverdueResponse
)
from decimal import Decimal
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/product-groups", tags=["Product Groups"])


def to_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


# =================
# PUBLIC ROUTES
# =================

@router.get("/", response_model=ProductGroupListResponse)
async def list_product_groups(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[ProductGroupStatus] = Query(None, alias="status"),
    active_only: bool = Query(False, description="Only active groups whose deadline has not passed"),
    caller: Caller = Depends(get_optional_caller),
    access: SecureAccess = Depends(get_access)
):
    """Browse bulk discount groups, closest deadline first"""
    criteria = []
    if status_filter:
        criteria.append(ProductGroup.status == status_filter.value)
    if active_only:
        criteria.append(ProductGroup.status == ProductGroupStatus.ACTIVE.value)
        criteria.append(ProductGroup.deadline > access.clock())

    total = await access.count(caller, ProductGroup, *criteria)
    groups = await access.select(
        caller,
        ProductGroup,
        *criteria,
        order_by=(ProductGroup.deadline,),
        offset=(page - 1) * limit,
        limit=limit
    )

    return ProductGroupListResponse(
        product_groups=safe_model_validate_list(ProductGroupResponse, groups),
        page=page,
        limit=limit,
        total=total
    )


# =================
# INTERNAL ROUTES
# =================

@router.post("/expire-overdue", response_model=ExpireOverdueResponse)
async def expire_overdue_groups(
    caller: Caller = Depends(get_service_caller),
    access: SecureAccess = Depends(get_access)
):
    """Move active groups past their deadline to expired - called by cron job"""
    try:
        expired = await access.update_where(
            caller,
            ProductGroup,
            ProductGroup.status == ProductGroupStatus.ACTIVE.value,
            ProductGroup.deadline < access.clock(),
            changes={"status": ProductGroupStatus.EXPIRED.value}
        )
        await access.db.commit()

        logger.info(f"Expired {len(expired)} overdue product groups")
        return ExpireOverdueResponse(
            expired_count=len(expired),
            expired_ids=[str(group.id) for group in expired]
        )

    except (HTTPException, MarketplaceError):
        raise
    except Exception as e:
        logger.error(f"Error expiring product groups: {str(e)}")
        await access.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to expire product groups"
        )


@router.get("/{group_id}", response_model=ProductGroupResponse)
async def get_product_group(
    group_id: str,
    caller: Caller = Depends(get_optional_caller),
    access: SecureAccess = Depends(get_access)
):
    group = await access.get(caller, ProductGroup, parse_uuid(group_id, "product group ID"))
    if group is None:
        raise not_found("Product group")
    return safe_model_validate(ProductGroupResponse, group)


# =================
# SUPPLIER ROUTES
# =================

@router.post("/", response_model=ProductGroupResponse, status_code=status.HTTP_201_CREATED)
async def create_product_group(
    group_data: ProductGroupCreate,
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """Open a bulk discount group under the caller's supplier profile"""
    try:
        supplier = await access.own_profile(caller, SupplierProfile)
        if supplier is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="A supplier profile is required to create product groups"
            )

        group = await access.insert(caller, ProductGroup, {
            **group_data.model_dump(),
            "created_by": supplier.id,
        })
        await access.db.commit()

        return safe_model_validate(ProductGroupResponse, group)

    except (HTTPException, MarketplaceError):
        raise
    except Exception as e:
        logger.error(f"Error creating product group: {str(e)}")
        await access.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create product group"
        )


@router.put("/{group_id}", response_model=ProductGroupResponse)
async def update_product_group(
    group_id: str,
    group_update: ProductGroupUpdate,
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """Update one of the caller's groups; the discounted rate may not exceed the actual rate"""
    try:
        group_uuid = parse_uuid(group_id, "product group ID")
        changes = group_update.model_dump(exclude_unset=True)

        if "final_rate" in changes or "actual_rate" in changes:
            current = await access.get(caller, ProductGroup, group_uuid)
            if current is None:
                raise not_found("Product group")
            actual_rate = to_decimal(changes.get("actual_rate", current.actual_rate))
            final_rate = to_decimal(changes.get("final_rate", current.final_rate))
            if final_rate > actual_rate:
                raise ConstraintViolation(
                    "product_groups_final_rate_not_above_actual",
                    field="final_rate",
                    message="final_rate cannot exceed actual_rate"
                )

        group = await access.update(caller, ProductGroup, group_uuid, changes)
        if group is None:
            raise not_found("Product group")
        await access.db.commit()

        return safe_model_validate(ProductGroupResponse, group)

    except (HTTPException, MarketplaceError):
        raise
    except Exception as e:
        logger.error(f"Error updating product group: {str(e)}")
        await access.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update product group"
        )


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product_group(
    group_id: str,
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    try:
        deleted = await access.delete(caller, ProductGroup, parse_uuid(group_id, "product group ID"))
        if not deleted:
            raise not_found("Product group")
        await access.db.commit()

        return Response(status_code=status.HTTP_204_NO_CONTENT)

    except (HTTPException, MarketplaceError):
        raise
    except Exception as e:
        logger.error(f"Error deleting product group: {str(e)}")
        await access.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete product group"
        )
