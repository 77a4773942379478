from fastapi import APIRouter, Depends, HTTPException, status
from models import VendorProfile
from access import SecureAccess, get_access
from dependencies.caller import Caller
from routers.auth.auth import get_current_caller
from utils.errors import MarketplaceError
from utils.request_helpers import parse_uuid, not_found
from utils.response_helpers import safe_model_validate
from .schemas import VendorCreate, VendorUpdate, VendorResponse
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vendors", tags=["Vendors"])


@router.post("/", response_model=VendorResponse, status_code=status.HTTP_201_CREATED)
async def create_vendor_profile(
    vendor_data: VendorCreate,
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """Onboard the caller's own vendor profile (one per account)"""
    try:
        vendor = await access.insert(caller, VendorProfile, {
            **vendor_data.model_dump(),
            "user_id": caller.user_id,
        })
        await access.db.commit()

        return safe_model_validate(VendorResponse, vendor)

    except (HTTPException, MarketplaceError):
        raise
    except Exception as e:
        logger.error(f"Error creating vendor profile: {str(e)}")
        await access.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create vendor profile"
        )


@router.get("/me", response_model=VendorResponse)
async def get_my_vendor_profile(
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """Get the caller's vendor profile"""
    vendor = await access.own_profile(caller, VendorProfile)
    if vendor is None:
        raise not_found("Vendor profile")
    return safe_model_validate(VendorResponse, vendor)


@router.get("/{vendor_id}", response_model=VendorResponse)
async def get_vendor_profile(
    vendor_id: str,
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """Get a vendor profile; only its owner can see it"""
    vendor = await access.get(caller, VendorProfile, parse_uuid(vendor_id, "vendor ID"))
    if vendor is None:
        raise not_found("Vendor profile")
    return safe_model_validate(VendorResponse, vendor)


@router.put("/{vendor_id}", response_model=VendorResponse)
async def update_vendor_profile(
    vendor_id: str,
    vendor_update: VendorUpdate,
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """Update the caller's own vendor profile"""
    try:
        vendor = await access.update(
            caller,
            VendorProfile,
            parse_uuid(vendor_id, "vendor ID"),
            vendor_update.model_dump(exclude_unset=True)
        )
        if vendor is None:
            raise not_found("Vendor profile")
        await access.db.commit()

        return safe_model_validate(VendorResponse, vendor)

    except (HTTPException, MarketplaceError):
        raise
    except Exception as e:
        logger.error(f"Error updating vendor profile: {str(e)}")
        await access.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update vendor profile"
        )
