from fastapi import HTTPException, status
from uuid import UUID


def parse_uuid(value: str, label: str = "ID") -> UUID:
    """Validate an id taken from the URL path"""
    try:
        return UUID(value)
    except (ValueError, AttributeError, TypeError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label} format. Must be a valid UUID."
        )


def not_found(label: str) -> HTTPException:
    # unauthorized rows are reported exactly like missing ones
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{label} not found"
    )
