# homecook/auth.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header, Request
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .config import Settings
from .db import get_db
from .errors import Unauthorized
from .models import Role, User

logger = logging.getLogger(__name__)

pwd = CryptContext(schemes=["argon2"], deprecated="auto")


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, as trusted by the rest of the service."""

    user_id: str
    role: str

    @property
    def is_cook(self) -> bool:
        return self.role == Role.COOK

    @property
    def is_eater(self) -> bool:
        return self.role in (Role.EATER, Role.USER)


def hash_password(p: str) -> str:
    return pwd.hash(p)


def verify_password(p: str, h: str) -> bool:
    return pwd.verify(p, h)


def create_token(user_id: str, settings: Settings) -> str:
    exp = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    payload = {"sub": str(user_id), "exp": exp}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_alg)


def decode_token(token: str, settings: Settings) -> Optional[str]:
    try:
        data = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_alg])
    except JWTError:
        return None
    sub = data.get("sub")
    return str(sub) if sub else None


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _bearer(authorization: str | None) -> str | None:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    return authorization.split(" ", 1)[1].strip() or None


def optional_principal(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Optional[Principal]:
    token = _bearer(authorization)
    if not token:
        return None
    uid = decode_token(token, settings)
    if not uid:
        return None

    # Role is mutable after registration, so it is always read fresh
    u = db.query(User).filter(User.id == uid).first()
    if not u:
        return None
    return Principal(user_id=u.id, role=u.role)


def require_principal(principal: Optional[Principal] = Depends(optional_principal)) -> Principal:
    if principal is None:
        raise Unauthorized("You must be logged in to access this resource")
    return principal
