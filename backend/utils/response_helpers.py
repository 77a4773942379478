"""
Response helper utilities for handling UUID conversions and model validation
"""
from typing import Any, List
from decimal import Decimal
import uuid
from pydantic import BaseModel


def convert_uuids_to_strings(obj: Any) -> Any:
    """
    Recursively convert UUID objects to strings in any data structure
    """
    if isinstance(obj, uuid.UUID):
        return str(obj)
    elif isinstance(obj, dict):
        return {key: convert_uuids_to_strings(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [convert_uuids_to_strings(item) for item in obj]
    else:
        return obj


def row_to_dict(row: Any) -> dict:
    """Column values of a SQLAlchemy row, skipping internal state and relationships"""
    return {column.key: getattr(row, column.key) for column in row.__table__.columns}


def safe_model_validate(model_class: BaseModel, data: Any) -> BaseModel:
    """
    Safely validate a model by converting UUIDs to strings first
    """
    if hasattr(data, "__table__"):
        data = row_to_dict(data)

    return model_class.model_validate(convert_uuids_to_strings(data))


def safe_model_validate_list(model_class: BaseModel, data_list: List[Any]) -> List[BaseModel]:
    """
    Safely validate a list of models by converting UUIDs to strings first
    """
    return [safe_model_validate(model_class, item) for item in data_list]


def to_json_safe(obj: Any) -> Any:
    """Make a snapshot (order items, customer details) storable in a JSON column"""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, dict):
        return {key: to_json_safe(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [to_json_safe(item) for item in obj]
    return convert_uuids_to_strings(obj)
