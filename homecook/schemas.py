# homecook/schemas.py
"""
Request and response shapes for the HTTP surface.

Wire names are camelCase (foodItemId, servingsSold, ...); Python attributes
stay snake_case. Requests are parsed here into typed commands before any
ordering logic sees them.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr
from pydantic.alias_generators import to_camel

from .models import FoodItem, Image, Order, OrderItem, Review, User
from .ordering.availability import resolve
from .ordering.cart import CartLine, line_total
from .ordering.inventory import remaining
from .ordering.orders import order_summary
from .ordering.reviews import RatingSummary


class Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -------------------
# Requests
# -------------------
class RegisterIn(Schema):
    email: EmailStr
    password: str
    name: str
    role: str
    address: str
    bio: Optional[str] = None


class LoginIn(Schema):
    email: EmailStr
    password: str


class AccountUpdateIn(Schema):
    name: Optional[str] = None
    address: Optional[str] = None
    bio: Optional[str] = None
    role: Optional[str] = None
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class MealCreateIn(Schema):
    name: str
    description: str
    price: float
    available: bool = True
    servings: int = 1
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    image_url: Optional[str] = None


class MealUpdateIn(Schema):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    available: Optional[bool] = None
    servings: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class AvailabilityIn(Schema):
    # omitted -> toggle
    available: Optional[bool] = None


class OrderLineIn(Schema):
    food_item_id: str
    quantity: int
    price: float

    def to_line(self) -> CartLine:
        return CartLine(food_item_id=self.food_item_id, quantity=self.quantity, price=self.price)


class OrderCreateIn(Schema):
    items: List[OrderLineIn]
    total: float


class OrderStatusIn(Schema):
    status: str


class ReviewIn(Schema):
    cook_id: Optional[str] = None
    food_item_id: Optional[str] = None
    rating: int
    comment: Optional[str] = None


# -------------------
# Responses
# -------------------
class TokenOut(Schema):
    token: str


class ProfileOut(Schema):
    profile_id: Optional[str] = None


class MessageOut(Schema):
    message: str


class UserOut(Schema):
    id: str
    email: str
    name: str
    role: str
    address: str
    bio: Optional[str] = None
    image: Optional[str] = None

    @classmethod
    def of(cls, u: User) -> "UserOut":
        return cls(id=u.id, email=u.email, name=u.name, role=u.role, address=u.address, bio=u.bio, image=u.image)


class ImageOut(Schema):
    id: str
    url: str
    food_item_id: Optional[str] = None
    user_id: Optional[str] = None

    @classmethod
    def of(cls, img: Image) -> "ImageOut":
        return cls(id=img.id, url=img.url, food_item_id=img.food_item_id, user_id=img.user_id)


class CookBrief(Schema):
    id: str
    name: str
    image: Optional[str] = None


class FoodItemOut(Schema):
    id: str
    cook_id: str
    menu_id: str
    name: str
    description: str
    price: float
    available: bool
    servings: int
    servings_sold: int
    servings_left: int
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: str
    status_label: str
    time_range: Optional[str] = None
    images: List[ImageOut] = []
    cook: Optional[CookBrief] = None
    created_at: Optional[datetime] = None

    @classmethod
    def of(cls, it: FoodItem, now: datetime, with_cook: bool = False) -> "FoodItemOut":
        a = resolve(it, now)
        cook = None
        if with_cook and it.cook is not None:
            cook = CookBrief(id=it.cook.id, name=it.cook.name, image=it.cook.image)
        return cls(
            id=it.id,
            cook_id=it.cook_id,
            menu_id=it.menu_id,
            name=it.name,
            description=it.description,
            price=it.price,
            available=it.available,
            servings=it.servings,
            servings_sold=it.servings_sold,
            servings_left=remaining(it),
            start_date=it.start_date,
            end_date=it.end_date,
            status=a.status,
            status_label=a.label,
            time_range=a.time_range,
            images=[ImageOut.of(i) for i in it.images],
            cook=cook,
            created_at=it.created_at,
        )


class OrderItemOut(Schema):
    id: str
    food_item_id: str
    food_item_name: Optional[str] = None
    cook_id: Optional[str] = None
    quantity: int
    price: float
    line_total: float

    @classmethod
    def of(cls, oi: OrderItem) -> "OrderItemOut":
        fi = oi.food_item
        return cls(
            id=oi.id,
            food_item_id=oi.food_item_id,
            food_item_name=fi.name if fi else None,
            cook_id=fi.cook_id if fi else None,
            quantity=oi.quantity,
            price=oi.price,
            line_total=line_total(oi.quantity, oi.price),
        )


class EaterBrief(Schema):
    name: str
    email: str


class OrderOut(Schema):
    id: str
    eater_id: str
    status: str
    total: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[OrderItemOut]
    summary: str
    eater: Optional[EaterBrief] = None

    @classmethod
    def of(cls, o: Order, with_eater: bool = False) -> "OrderOut":
        eater = EaterBrief(name=o.eater.name, email=o.eater.email) if with_eater and o.eater else None
        return cls(
            id=o.id,
            eater_id=o.eater_id,
            status=o.status,
            total=o.total,
            created_at=o.created_at,
            updated_at=o.updated_at,
            items=[OrderItemOut.of(oi) for oi in o.items],
            summary=order_summary(o),
            eater=eater,
        )


class RatingOut(Schema):
    average: Optional[float] = None
    count: int

    @classmethod
    def of(cls, r: RatingSummary) -> "RatingOut":
        return cls(average=r.average, count=r.count)


class ReviewOut(Schema):
    id: str
    rating: int
    comment: str
    reviewer_id: str
    reviewer_name: Optional[str] = None
    reviewed_id: str
    food_item_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def of(cls, r: Review) -> "ReviewOut":
        return cls(
            id=r.id,
            rating=r.rating,
            comment=r.comment,
            reviewer_id=r.reviewer_id,
            reviewer_name=r.reviewer.name if r.reviewer else None,
            reviewed_id=r.reviewed_id,
            food_item_id=r.food_item_id,
            created_at=r.created_at,
        )


class CookPublic(Schema):
    id: str
    name: str
    bio: Optional[str] = None
    address: Optional[str] = None
    image: Optional[str] = None
    images: List[ImageOut] = []


class CookProfileOut(Schema):
    cook: CookPublic
    food_items: List[FoodItemOut]
    reviews: List[ReviewOut]
    rating: RatingOut


class CookSearchOut(Schema):
    id: str
    name: str
    bio: Optional[str] = None
    image: Optional[str] = None
    rating: RatingOut


class SearchOut(Schema):
    query: str
    cooks: List[CookSearchOut]
    food_items: List[FoodItemOut]
