from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from access import SecureAccess, get_access
from dependencies.caller import Caller
from routers.auth.auth import get_service_caller
from utils.errors import MarketplaceError
from utils.request_helpers import parse_uuid, not_found
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


class AccountRemovalResponse(BaseModel):
    user_id: str
    message: str


@router.delete("/accounts/{user_id}", response_model=AccountRemovalResponse)
async def remove_account(
    user_id: str,
    caller: Caller = Depends(get_service_caller),
    access: SecureAccess = Depends(get_access)
):
    """
    Internal only: remove an account mirror row. The account's vendor or
    supplier profile and everything hanging off it is removed by cascade.
    """
    try:
        removed = await access.remove_account(caller, parse_uuid(user_id, "user ID"))
        if not removed:
            raise not_found("Account")
        await access.db.commit()

        logger.info(f"Account {user_id} removed by internal call")
        return AccountRemovalResponse(user_id=user_id, message="Account removed successfully")

    except (HTTPException, MarketplaceError):
        raise
    except Exception as e:
        logger.error(f"Account removal failed: {str(e)}")
        await access.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to remove account"
        )
