# homecook/images.py
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from .auth import Principal
from .db import transaction
from .errors import InvalidInput
from .models import Image, User
from .ordering.menu import get_food_item
from .policy import Action, authorize

logger = logging.getLogger(__name__)

FOOD = "food"
PROFILE = "profile"
KINDS = (FOOD, PROFILE)


def check_upload(
    db: Session,
    principal: Principal,
    kind: str,
    content_type: Optional[str],
    size: int,
    max_bytes: int,
    food_item_id: Optional[str] = None,
) -> None:
    """Everything that can be refused is refused before bytes leave the server."""
    if kind not in KINDS:
        raise InvalidInput(f"Invalid upload type: {kind}")
    if not content_type or not content_type.startswith("image/"):
        raise InvalidInput("Only image files can be uploaded")
    if size <= 0:
        raise InvalidInput("No file provided")
    if size > max_bytes:
        raise InvalidInput(f"Image is larger than {max_bytes} bytes")
    if food_item_id:
        authorize(principal, Action.MANAGE_FOOD_ITEM, get_food_item(db, food_item_id))


def record_upload(db: Session, principal: Principal, url: str, kind: str, food_item_id: Optional[str] = None) -> Image:
    with transaction(db, "saving image"):
        img = Image(url=url, user_id=principal.user_id, food_item_id=food_item_id or None)
        db.add(img)
        if kind == PROFILE:
            db.query(User).filter(User.id == principal.user_id).update({User.image: url}, synchronize_session=False)

    db.refresh(img)
    logger.info("Image %s (%s) saved for user %s", img.id, kind, principal.user_id)
    return img
