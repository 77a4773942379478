from fastapi import APIRouter, Depends, HTTPException, status, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
from models import VendorProfile, SupplierProfile
from access import SecureAccess, get_access
from config import INTERNAL_SECRET
from dependencies.caller import Caller
from .schemas import CallerResponse
from .helpers import auth_helpers
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


async def get_current_caller(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Caller:
    """Authenticated caller from the bearer JWT; anonymous tokens are refused"""
    caller = auth_helpers.verify_token(credentials.credentials)
    if caller.is_anonymous:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )
    logger.info(f"Caller {caller.user_id} authenticated via JWT")
    return caller


async def get_optional_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security)
) -> Caller:
    """Caller from the bearer JWT, or the anonymous caller when no token is sent"""
    if credentials is None:
        return Caller.anonymous()
    return auth_helpers.verify_token(credentials.credentials)


async def get_service_caller(
    x_internal_secret: str = Header(...)
) -> Caller:
    """Service-role caller for internal cron and maintenance calls"""
    if not INTERNAL_SECRET or x_internal_secret != INTERNAL_SECRET:
        logger.warning("Rejected internal call with a bad secret")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return Caller.service()


@router.get("/me", response_model=CallerResponse)
async def get_me(
    caller: Caller = Depends(get_current_caller),
    access: SecureAccess = Depends(get_access)
):
    """Who the caller is and which marketplace profiles it owns"""
    try:
        vendor = await access.own_profile(caller, VendorProfile)
        supplier = await access.own_profile(caller, SupplierProfile)

        return CallerResponse(
            user_id=str(caller.user_id),
            email=caller.email,
            role=caller.role,
            vendor_id=str(vendor.id) if vendor else None,
            supplier_id=str(supplier.id) if supplier else None
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error resolving caller profiles: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to resolve caller"
        )
