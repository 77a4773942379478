from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import Optional
from models import SupplierProfile
from access import SecureAccess, get_access
from dependencies.caller import Caller
from routers.auth.auth import get_current_caller, get_optional_caller
from utils.errors import MarketplaceError
from utils.request_helpers import parse_uuid, not_found
from utils.response_helpers import safe_model_validate, safe_model_validate_list
from .schemas import SupplierCreate, SupplierUpdate, SupplierResponse, SupplierListResponse
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/suppliers", tags=["Suppliers"])


@router.get("/", response_model=SupplierListResponse)
async def list_suppliers(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    city: Optional[str] = Query(None),
    caller: Caller = Depends(get_optional_caller),
    access: SecureAccess = Depends(get_access)
):
    """Browse suppliers, best rated first (public)"""
    criteria = []
    if city:
        criteria.append(SupplierProfile.city == city)

    total = await access.count(caller, SupplierProfile, *criteria)
    suppliers = await access.select(
        caller,
        SupplierProfile,
        *criteria,
        order_by=(SupplierProfile.rating.desc(), SupplierProfile.business_name),
        offset=(page - 1) * limit,
        limit=limit
    )

    return SupplierListResponse(
        suppliers=safe_model_validate_list(SupplierResponse, suppliers),
        page=page,
        limit=limit,
        total=total
    )


@router.get("/me", response_model=SupplierResponse)
async def get_my_supplier_profile(
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """Get the caller's supplier profile"""
    supplier = await access.own_profile(caller, SupplierProfile)
    if supplier is None:
        raise not_found("Supplier profile")
    return safe_model_validate(SupplierResponse, supplier)


@router.get("/{supplier_id}", response_model=SupplierResponse)
async def get_supplier(
    supplier_id: str,
    caller: Caller = Depends(get_optional_caller),
    access: SecureAccess = Depends(get_access)
):
    """Get a supplier profile (public)"""
    supplier = await access.get(caller, SupplierProfile, parse_uuid(supplier_id, "supplier ID"))
    if supplier is None:
        raise not_found("Supplier")
    return safe_model_validate(SupplierResponse, supplier)


@router.post("/", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
async def create_supplier_profile(
    supplier_data: SupplierCreate,
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """Onboard the caller's own supplier profile (one per account)"""
    try:
        supplier = await access.insert(caller, SupplierProfile, {
            **supplier_data.model_dump(),
            "user_id": caller.user_id,
        })
        await access.db.commit()

        return safe_model_validate(SupplierResponse, supplier)

    except (HTTPException, MarketplaceError):
        raise
    except Exception as e:
        logger.error(f"Error creating supplier profile: {str(e)}")
        await access.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create supplier profile"
        )


@router.put("/{supplier_id}", response_model=SupplierResponse)
async def update_supplier_profile(
    supplier_id: str,
    supplier_update: SupplierUpdate,
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """Update the caller's own supplier profile"""
    try:
        supplier = await access.update(
            caller,
            SupplierProfile,
            parse_uuid(supplier_id, "supplier ID"),
            supplier_update.model_dump(exclude_unset=True)
        )
        if supplier is None:
            raise not_found("Supplier")
        await access.db.commit()

        return safe_model_validate(SupplierResponse, supplier)

    except (HTTPException, MarketplaceError):
        raise
    except Exception as e:
        logger.error(f"Error updating supplier profile: {str(e)}")
        await access.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update supplier profile"
        )
