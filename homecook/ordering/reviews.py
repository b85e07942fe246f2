# homecook/ordering/reviews.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth import Principal
from ..errors import Conflict, Internal, InvalidInput, InvalidRating, NotFound, WrongSubjectType
from ..models import FoodItem, Review, Role, User
from ..policy import Action, authorize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RatingSummary:
    average: Optional[float]  # None means "no reviews yet"
    count: int


def _check_rating(rating) -> int:
    # bool is an int subclass; True is not a rating
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise InvalidRating("Rating must be a whole number between 1 and 5")
    return rating


def add_review(
    db: Session,
    principal: Principal,
    rating,
    comment: Optional[str] = None,
    cook_id: Optional[str] = None,
    food_item_id: Optional[str] = None,
) -> Review:
    """
    One review per (reviewer, cook) and per (reviewer, food item).
    Uniqueness is left to the database: the insert is attempted and a
    constraint violation becomes Conflict, so parallel requests cannot both win.
    """
    rating = _check_rating(rating)
    if bool(cook_id) == bool(food_item_id):
        raise InvalidInput("Exactly one of cookId or foodItemId must be provided")

    if cook_id:
        cook = db.query(User).filter(User.id == cook_id).first()
        if not cook:
            raise NotFound("Cook not found")
        if cook.role != Role.COOK:
            raise WrongSubjectType("User is not a cook")
        authorize(principal, Action.REVIEW, cook)
        review = Review(rating=rating, comment=comment or "", reviewer_id=principal.user_id, reviewed_id=cook.id)
        duplicate = "You have already reviewed this cook"
    else:
        item = db.query(FoodItem).filter(FoodItem.id == food_item_id).first()
        if not item:
            raise NotFound("Food item not found")
        authorize(principal, Action.REVIEW, item.cook)
        review = Review(
            rating=rating,
            comment=comment or "",
            reviewer_id=principal.user_id,
            reviewed_id=item.cook_id,
            food_item_id=item.id,
        )
        duplicate = "You have already reviewed this food item"

    db.add(review)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.info("Duplicate review from %s rejected", principal.user_id)
        raise Conflict(duplicate) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Persistence failure while creating review")
        raise Internal("Error creating review") from e

    db.refresh(review)
    logger.info("Review %s created by %s", review.id, principal.user_id)
    return review


def _summary(db: Session, *criteria) -> RatingSummary:
    total, count = db.query(func.sum(Review.rating), func.count(Review.id)).filter(*criteria).one()
    count = int(count or 0)
    if count == 0:
        return RatingSummary(average=None, count=0)
    return RatingSummary(average=round(float(total) / count, 2), count=count)


def cook_rating(db: Session, cook_id: str) -> RatingSummary:
    """Reviews of the cook themselves; item reviews are rated separately."""
    return _summary(db, Review.reviewed_id == cook_id, Review.food_item_id.is_(None))


def food_item_rating(db: Session, food_item_id: str) -> RatingSummary:
    return _summary(db, Review.food_item_id == food_item_id)


def average_rating(db: Session, cook_id: Optional[str] = None, food_item_id: Optional[str] = None) -> RatingSummary:
    if bool(cook_id) == bool(food_item_id):
        raise InvalidInput("Exactly one of cookId or foodItemId must be provided")
    if cook_id:
        return cook_rating(db, cook_id)
    return food_item_rating(db, food_item_id)


def cook_reviews(db: Session, cook_id: str) -> list[Review]:
    return (
        db.query(Review)
        .filter(Review.reviewed_id == cook_id, Review.food_item_id.is_(None))
        .order_by(Review.created_at.desc())
        .all()
    )
