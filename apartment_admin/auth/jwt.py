from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..config import settings
from ..core.request_context import get_client_ip
from ..models.models import Admin
from .session import AdminSession

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_minutes: Optional[int] = None) -> str:
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or settings.access_token_expire_minutes
    )
    to_encode = data.copy()
    to_encode.setdefault("type", "access")
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def get_current_admin(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> Admin:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
        admin_id: Optional[str] = payload.get("sub")
        if admin_id is None or payload.get("type") not in (None, "access"):
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    admin = (
        db.query(Admin)
        .filter(Admin.id == admin_id, Admin.is_deleted.is_(False), Admin.is_active.is_(True))
        .first()
    )
    if admin is None:
        raise credentials_exception
    return admin


def get_admin_session(request: Request, admin: Admin = Depends(get_current_admin)) -> AdminSession:
    return AdminSession(
        user_id=admin.id,
        email=admin.email,
        role=admin.role,
        ip_address=get_client_ip(request),
    )


def require_roles(*allowed_roles: str):
    allowed = set(allowed_roles)

    def role_checker(session: AdminSession = Depends(get_admin_session)) -> AdminSession:
        if not allowed or session.role in allowed:
            return session
        raise HTTPException(status_code=403, detail="Operation not permitted for your role")

    return role_checker


require_admin = require_roles("admin", "super-admin")
require_super_admin = require_roles("super-admin")
