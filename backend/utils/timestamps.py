from datetime import datetime, timezone
from typing import Any, Dict

# order_items is append-only history and has no updated_at
TIMESTAMPED_TABLES = frozenset({"vendors", "suppliers", "products", "orders", "product_groups"})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def stamp_updated_at(table_name: str, changes: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    """Return the changes with updated_at forced to now, whatever the caller supplied"""
    stamped = dict(changes)
    if table_name in TIMESTAMPED_TABLES:
        stamped["updated_at"] = now
    else:
        stamped.pop("updated_at", None)
    return stamped


def stamp_created(model, values: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    """Creation and modification times of a new row both come from the clock"""
    stamped = dict(values)
    columns = model.__table__.columns
    if "created_at" in columns:
        stamped["created_at"] = now
    if "updated_at" in columns:
        stamped["updated_at"] = now
    return stamped
