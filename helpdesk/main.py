import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

import helpdesk.models  # noqa: F401  registers every table on Base.metadata
from helpdesk.core.config import settings
from helpdesk.core.database import Base, SessionLocal, engine
from helpdesk.core.logging import setup_logging
from helpdesk.api.routes.audit_logs import router as audit_logs_router
from helpdesk.api.routes.chat import router as chat_router
from helpdesk.api.routes.contact_tickets import router as contact_tickets_router
from helpdesk.api.routes.lookups import routers as lookup_routers
from helpdesk.api.routes.maintenance import router as maintenance_router
from helpdesk.api.routes.reports import router as reports_router
from helpdesk.api.routes.settings import router as settings_router
from helpdesk.api.routes.tickets import router as tickets_router
from helpdesk.api.routes.users import router as users_router
from helpdesk.api.routes.work_orders import router as work_orders_router
from helpdesk.services.work_order_lifecycle import InvalidTransition, NotUndoable

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Helpdesk Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(tickets_router)
app.include_router(contact_tickets_router)
app.include_router(work_orders_router)
for lookup_router in lookup_routers:
    app.include_router(lookup_router)
app.include_router(users_router)
app.include_router(settings_router)
app.include_router(maintenance_router)
app.include_router(reports_router)
app.include_router(audit_logs_router)
app.include_router(chat_router)


@app.exception_handler(InvalidTransition)
def invalid_transition_handler(request: Request, exc: InvalidTransition):
    logger.info("Rejected work order %s transition %s -> %s", exc.work_order_id, exc.from_status.name, exc.to_status.name)
    return JSONResponse(
        status_code=409,
        content={
            "error": "invalid_transition",
            "detail": str(exc),
            "work_order_id": exc.work_order_id,
            "from": int(exc.from_status),
            "to": int(exc.to_status),
        },
    )


@app.exception_handler(NotUndoable)
def not_undoable_handler(request: Request, exc: NotUndoable):
    return JSONResponse(
        status_code=409,
        content={"error": "not_undoable", "detail": str(exc), "status": int(exc.status)},
    )


@app.on_event("startup")
def create_dev_schema() -> None:
    # migrations own the schema everywhere except local development
    if settings.ENV == "dev":
        Base.metadata.create_all(bind=engine)


@app.get("/health")
def health():
    return {"ok": True, "service": "helpdesk"}


@app.get("/db-health")
def db_health():
    db = SessionLocal()
    try:
        db.execute(text("select 1"))
        return {"ok": True, "db": "connected"}
    finally:
        db.close()
