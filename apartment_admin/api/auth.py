import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import (
    create_access_token,
    get_admin_session,
    get_current_admin,
    get_password_hash,
    require_super_admin,
    verify_password,
)
from ..auth.session import AdminSession
from ..core.request_context import get_client_ip
from ..models.models import Admin, utcnow
from ..schemas.schemas import AdminCreate, AdminRead, Token
from ..services.audit import audit_log
from ..services.ledger_store import LedgerStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=Token)
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    store = LedgerStore(db)
    admin = store.query(Admin, email=form_data.username.strip().lower()).first()
    if not admin or not verify_password(form_data.password, admin.hashed_password):
        logger.info("Failed login for %s", form_data.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not admin.is_active:
        raise HTTPException(status_code=403, detail="Account is inactive.")

    store.update(admin, last_login=utcnow())
    actor = AdminSession(user_id=admin.id, email=admin.email, role=admin.role, ip_address=get_client_ip(request))
    audit_log(
        db,
        actor,
        action="login",
        entity_type="admin",
        entity_id=admin.id,
        description=f"Login: {admin.email}",
    )
    token = create_access_token({"sub": admin.id, "role": admin.role})
    return Token(access_token=token, role=admin.role)


@router.post("/logout", status_code=204)
def logout(
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(get_admin_session),
) -> None:
    # Tokens are stateless; the client discards its copy.
    audit_log(
        db,
        actor,
        action="logout",
        entity_type="admin",
        entity_id=actor.user_id,
        description=f"Logout: {actor.email}",
    )


@router.get("/me", response_model=AdminRead)
def read_current_admin(current_admin: Admin = Depends(get_current_admin)) -> Admin:
    return current_admin


@router.get("/admins", response_model=List[AdminRead])
def list_admins(
    db: Session = Depends(get_db),
    _: AdminSession = Depends(require_super_admin),
) -> List[Admin]:
    store = LedgerStore(db)
    return store.all(store.query(Admin).order_by(Admin.email.asc()))


@router.post("/admins", response_model=AdminRead, status_code=201)
def register_admin(
    payload: AdminCreate,
    db: Session = Depends(get_db),
    actor: AdminSession = Depends(require_super_admin),
) -> Admin:
    store = LedgerStore(db)
    email = payload.email.lower()
    if store.query(Admin, email=email).first():
        raise HTTPException(status_code=400, detail="Email already registered")
    admin = store.create(
        Admin,
        email=email,
        display_name=payload.display_name,
        hashed_password=get_password_hash(payload.password),
        role=payload.role,
        is_active=True,
    )
    audit_log(
        db,
        actor,
        action="create",
        entity_type="admin",
        entity_id=admin.id,
        new_value={"email": admin.email, "role": admin.role},
        description=f"Admin created: {admin.email}",
    )
    return admin
