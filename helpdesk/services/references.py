"""Existence checks for foreign-key fields in request payloads."""
from typing import Any, Dict, List

from fastapi import HTTPException
from sqlalchemy.orm import Session

from helpdesk.models.asset import Asset
from helpdesk.models.lookup import Category, Department, Region, TicketType
from helpdesk.models.user import User

# payload field -> model the id must exist in
REFERENCES = {
    "contact_id": User,
    "assigned_to": User,
    "region_id": Region,
    "category_id": Category,
    "parent_id": Category,
    "department_id": Department,
    "type_id": TicketType,
    "asset_id": Asset,
}


def missing_references(db: Session, data: Dict[str, Any]) -> List[dict]:
    """Return one validation error per referenced id that has no row."""
    errors = []
    for field, value in data.items():
        model = REFERENCES.get(field)
        if model is None or value is None:
            continue
        if db.query(model.id).filter(model.id == value).first() is None:
            errors.append({
                "loc": ["body", field],
                "msg": f"{field} {value} does not exist",
                "type": "value_error.missing_reference",
                "input": value,
            })
    return errors


def check_references(db: Session, data: Dict[str, Any]) -> None:
    """Raise 422 with field-level messages before anything is staged."""
    errors = missing_references(db, data)
    if errors:
        raise HTTPException(status_code=422, detail=errors)
