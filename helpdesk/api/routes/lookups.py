"""
Simple reference tables (regions, categories, departments, ticket types,
assets, organizations, FAQs, knowledge base articles). Every table gets the
same list / create / update / delete / bulk-delete endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional, Type

from pydantic import BaseModel

from helpdesk.api.deps import get_db
from helpdesk.core.auth import get_current_user, require_roles
from helpdesk.models.asset import Asset
from helpdesk.models.content import Faq, KnowledgeBaseArticle, Organization
from helpdesk.models.lookup import Category, Department, Region, TicketType
from helpdesk.models.user import ROLE_ADMIN, ROLE_MANAGER, ROLE_SUPER_ADMIN, User
from helpdesk.schemas.lookup import AssetIn, AssetOut, BulkDelete, CategoryIn, CategoryOut, LookupIn, LookupOut
from helpdesk.schemas.content import FaqIn, FaqOut, KnowledgeBaseIn, KnowledgeBaseOut, OrganizationIn, OrganizationOut
from helpdesk.services.references import check_references

manage_lookups = require_roles(ROLE_ADMIN, ROLE_SUPER_ADMIN, ROLE_MANAGER)


def build_lookup_router(
    model,
    prefix: str,
    label: str,
    schema_in: Type[BaseModel] = LookupIn,
    schema_out: Type[BaseModel] = LookupOut,
    order_field: str = "name",
) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[prefix.strip("/")])
    label_column = getattr(model, order_field)

    def _get(db: Session, item_id: int):
        row = db.query(model).filter(model.id == item_id).first()
        if not row:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        return row

    def _commit(db: Session) -> None:
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise HTTPException(status_code=409, detail=f"{label} conflicts with an existing record or is still in use")

    @router.get("", response_model=List[schema_out])
    def list_items(
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
        q: Optional[str] = Query(None),
        limit: int = Query(100, ge=1, le=500),
        offset: int = Query(0, ge=0),
    ):
        query = db.query(model)
        if q:
            query = query.filter(label_column.ilike(f"%{q}%"))
        return query.order_by(label_column).offset(offset).limit(limit).all()

    @router.post("", response_model=schema_out, status_code=201)
    def create_item(
        payload: schema_in,
        db: Session = Depends(get_db),
        current_user: User = Depends(manage_lookups),
    ):
        data = payload.model_dump()
        check_references(db, data)
        row = model(**data)
        db.add(row)
        _commit(db)
        db.refresh(row)
        return row

    @router.put("/{item_id}", response_model=schema_out)
    def update_item(
        item_id: int,
        payload: schema_in,
        db: Session = Depends(get_db),
        current_user: User = Depends(manage_lookups),
    ):
        row = _get(db, item_id)
        data = payload.model_dump()
        check_references(db, data)
        for k, v in data.items():
            setattr(row, k, v)
        _commit(db)
        db.refresh(row)
        return row

    @router.post("/bulk-delete")
    def bulk_delete(
        payload: BulkDelete,
        db: Session = Depends(get_db),
        current_user: User = Depends(manage_lookups),
    ):
        deleted = db.query(model).filter(model.id.in_(payload.ids)).delete(synchronize_session=False)
        _commit(db)
        return {"ok": True, "deleted": deleted}

    @router.delete("/{item_id}")
    def delete_item(
        item_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(manage_lookups),
    ):
        db.delete(_get(db, item_id))
        _commit(db)
        return {"ok": True}

    return router


regions_router = build_lookup_router(Region, "/regions", "Region")
categories_router = build_lookup_router(Category, "/categories", "Category", CategoryIn, CategoryOut)
departments_router = build_lookup_router(Department, "/departments", "Department")
ticket_types_router = build_lookup_router(TicketType, "/ticket-types", "Ticket type")
assets_router = build_lookup_router(Asset, "/assets", "Asset", AssetIn, AssetOut)

organizations_router = build_lookup_router(Organization, "/organizations", "Organization", OrganizationIn, OrganizationOut)
faqs_router = build_lookup_router(Faq, "/faqs", "FAQ", FaqIn, FaqOut)
knowledge_base_router = build_lookup_router(
    KnowledgeBaseArticle, "/knowledge-base", "Article", KnowledgeBaseIn, KnowledgeBaseOut, order_field="title"
)

routers = [
    regions_router,
    categories_router,
    departments_router,
    ticket_types_router,
    assets_router,
    organizations_router,
    faqs_router,
    knowledge_base_router,
]
