# homecook/accounts.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .auth import create_token, hash_password, verify_password
from .config import Settings
from .db import transaction
from .errors import Conflict, Internal, InvalidInput, NotFound, Unauthorized
from .models import Image, Menu, Order, Review, Role, User

logger = logging.getLogger(__name__)

# roles a user may switch between from account settings
SWITCHABLE_ROLES = (Role.COOK, Role.EATER)


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def register(
    db: Session,
    email: str,
    password: str,
    name: str,
    role: str,
    address: str,
    bio: Optional[str] = None,
) -> User:
    email = _normalize_email(email)
    if not email or not password or not (name or "").strip() or not role or not (address or "").strip():
        raise InvalidInput("Missing required fields")
    if role not in Role.SELF_SERVICE:
        raise InvalidInput(f"Invalid role: {role}")

    if db.query(User).filter(User.email == email).first():
        raise Conflict("User already exists")

    u = User(
        email=email,
        password_hash=hash_password(password),
        name=name.strip(),
        role=role,
        address=address.strip(),
        bio=bio or None,
    )
    db.add(u)
    try:
        db.commit()
    except IntegrityError as e:
        # lost a race with a parallel registration for the same email
        db.rollback()
        raise Conflict("User already exists") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Persistence failure while creating user")
        raise Internal("Error creating user") from e

    db.refresh(u)
    logger.info("User %s registered as %s", u.id, u.role)
    return u


def login(db: Session, email: str, password: str, settings: Settings) -> str:
    u = db.query(User).filter(User.email == _normalize_email(email)).first()
    if not u or not verify_password(password, u.password_hash):
        raise Unauthorized("Bad credentials")
    return create_token(u.id, settings)


def get_user(db: Session, user_id: str) -> User:
    u = db.query(User).filter(User.id == user_id).first()
    if not u:
        raise NotFound("User not found")
    return u


def update_account(db: Session, user_id: str, changes: Dict[str, Any]) -> User:
    u = get_user(db, user_id)
    new: Dict[str, Any] = {}

    if changes.get("name"):
        new["name"] = changes["name"].strip()
    if changes.get("address"):
        new["address"] = changes["address"].strip()
    if "bio" in changes and changes["bio"] is not None:
        new["bio"] = changes["bio"]  # empty bio allowed
    if changes.get("role"):
        if changes["role"] not in SWITCHABLE_ROLES:
            raise InvalidInput(f"Invalid role: {changes['role']}")
        new["role"] = changes["role"]

    if changes.get("new_password"):
        current = changes.get("current_password")
        if not current:
            raise InvalidInput("Current password is required to set a new password")
        if not verify_password(current, u.password_hash):
            raise InvalidInput("Invalid current password")
        new["password_hash"] = hash_password(changes["new_password"])

    if not new:
        raise InvalidInput("No update data provided")

    with transaction(db, "updating account"):
        for k, v in new.items():
            setattr(u, k, v)

    logger.info("User %s updated %s", user_id, sorted(k for k in new if k != "password_hash"))
    db.refresh(u)
    return u


def delete_account(db: Session, user_id: str) -> None:
    """
    Accounts with order, menu or review history cannot be removed; the
    records they anchor would be orphaned.
    """
    u = get_user(db, user_id)

    busy = (
        db.query(Order.id).filter(Order.eater_id == user_id).first()
        or db.query(Menu.id).filter(Menu.cook_id == user_id).first()
        or db.query(Review.id).filter((Review.reviewer_id == user_id) | (Review.reviewed_id == user_id)).first()
    )
    if busy:
        raise Conflict("Cannot delete account due to existing related records (e.g., orders).")

    with transaction(db, "deleting account"):
        db.query(Image).filter(Image.user_id == user_id).delete(synchronize_session=False)
        db.delete(u)

    logger.info("User %s deleted their account", user_id)
