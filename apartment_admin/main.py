import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from .api import (
    apartments,
    audit_logs,
    auth,
    blocks,
    dues,
    expenses,
    flats,
    incomes,
    notifications,
    payments,
    reports,
    residents,
    system,
)
from .auth.jwt import get_password_hash
from .config import Base, SessionLocal, engine, settings
from .core.errors import register_exception_handlers
from .core.logging import configure_logging
from .core.request_context import REQUEST_ID_HEADER, assign_request_id
from .models.models import Admin

configure_logging(settings.log_level, json=settings.log_json)
logger = logging.getLogger(__name__)

MUTATING_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


def ensure_bootstrap_admin(session: Session) -> None:
    if not settings.bootstrap_admin_email or not settings.bootstrap_admin_password:
        return
    if session.query(Admin).filter(Admin.is_deleted.is_(False)).first():
        return
    session.add(
        Admin(
            email=settings.bootstrap_admin_email.lower(),
            display_name="Administrator",
            hashed_password=get_password_hash(settings.bootstrap_admin_password),
            role="super-admin",
            is_active=True,
        )
    )
    session.commit()
    logger.info("Bootstrap super-admin %s created", settings.bootstrap_admin_email)


app = FastAPI(title="Apartment Admin")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.on_event("startup")
def startup() -> None:
    # In dev we make sure tables exist. Alembic migrations should be used for real schema evolution.
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        ensure_bootstrap_admin(session)


app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(apartments.router, prefix="/apartments", tags=["apartments"])
app.include_router(blocks.router, prefix="/blocks", tags=["blocks"])
app.include_router(flats.router, prefix="/flats", tags=["flats"])
app.include_router(residents.router, prefix="/residents", tags=["residents"])
app.include_router(dues.router, prefix="/dues", tags=["dues"])
app.include_router(payments.router, prefix="/payments", tags=["payments"])
app.include_router(expenses.router, prefix="/expenses", tags=["expenses"])
app.include_router(incomes.router, prefix="/incomes", tags=["incomes"])
app.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
app.include_router(audit_logs.router)
app.include_router(reports.router, tags=["reports"])
app.include_router(system.router, prefix="/system", tags=["system"])


@app.middleware("http")
async def request_trail(request: Request, call_next):
    request_id = assign_request_id(request)
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    if request.method in MUTATING_METHODS:
        logger.info(
            "%s %s -> %s",
            request.method,
            request.url.path,
            response.status_code,
            extra={"request_id": request_id},
        )
    return response
