# homecook/main.py
from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, FastAPI, File, Form, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import accounts, images
from .auth import Principal, get_settings, optional_principal, require_principal
from .config import Settings
from .db import Database, get_db
from .errors import DomainError, Internal, InvalidInput
from .models import Role, utcnow
from .ordering import menu, orders, reviews, search
from .schemas import (
    AccountUpdateIn,
    AvailabilityIn,
    CookProfileOut,
    CookPublic,
    CookSearchOut,
    FoodItemOut,
    ImageOut,
    LoginIn,
    MealCreateIn,
    MealUpdateIn,
    MessageOut,
    OrderCreateIn,
    OrderOut,
    OrderStatusIn,
    ProfileOut,
    RatingOut,
    RegisterIn,
    ReviewIn,
    ReviewOut,
    SearchOut,
    TokenOut,
    UserOut,
)
from .storage import ImageStore, build_image_store

logger = logging.getLogger(__name__)

router = APIRouter()


# -------------------
# Helpers
# -------------------
def get_clock(request: Request) -> Callable[[], datetime]:
    return request.app.state.clock


def get_now(clock: Callable[[], datetime] = Depends(get_clock)) -> datetime:
    return clock()


def get_image_store(request: Request) -> ImageStore:
    store = request.app.state.image_store
    if store is None:
        logger.error("Image upload attempted but no S3 bucket is configured")
        raise Internal("Server configuration error")
    return store


def _profile_out(profile: menu.CookProfile, now: datetime) -> CookProfileOut:
    c = profile.cook
    return CookProfileOut(
        cook=CookPublic(
            id=c.id,
            name=c.name,
            bio=c.bio,
            address=c.address,
            image=c.image,
            images=[ImageOut.of(i) for i in c.images],
        ),
        food_items=[FoodItemOut.of(it, now) for it in profile.food_items],
        reviews=[ReviewOut.of(r) for r in profile.reviews],
        rating=RatingOut.of(profile.rating),
    )


# -------------------
# Health
# -------------------
@router.get("/")
def root():
    return {"ok": True, "service": "homecook-api"}


# -------------------
# Auth
# -------------------
@router.post("/auth/register", response_model=UserOut)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    u = accounts.register(
        db,
        email=payload.email,
        password=payload.password,
        name=payload.name,
        role=payload.role,
        address=payload.address,
        bio=payload.bio,
    )
    return UserOut.of(u)


@router.post("/auth/login", response_model=TokenOut)
def login(payload: LoginIn, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    return TokenOut(token=accounts.login(db, payload.email, payload.password, settings))


# -------------------
# Account settings
# -------------------
@router.get("/account", response_model=UserOut)
def get_account(principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    return UserOut.of(accounts.get_user(db, principal.user_id))


@router.patch("/account", response_model=UserOut)
def update_account(
    payload: AccountUpdateIn,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
):
    u = accounts.update_account(db, principal.user_id, payload.model_dump(exclude_unset=True))
    return UserOut.of(u)


@router.delete("/account", response_model=MessageOut)
def delete_account(principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    accounts.delete_account(db, principal.user_id)
    return MessageOut(message="Account deleted")


@router.get("/profile", response_model=ProfileOut)
def profile(principal: Principal = Depends(require_principal)):
    return ProfileOut(profile_id=principal.user_id if principal.role == Role.COOK else None)


# -------------------
# Meals (cook's own)
# -------------------
@router.get("/meals", response_model=List[FoodItemOut])
def list_my_meals(
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return [FoodItemOut.of(it, now) for it in menu.list_cook_items(db, principal.user_id)]


@router.post("/meals", response_model=FoodItemOut)
def create_meal(
    payload: MealCreateIn,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    item = menu.create_food_item(
        db,
        principal,
        name=payload.name,
        description=payload.description,
        price=payload.price,
        available=payload.available,
        servings=payload.servings,
        start_date=payload.start_date,
        end_date=payload.end_date,
        image_url=payload.image_url,
    )
    return FoodItemOut.of(item, now)


@router.get("/meals/{meal_id}", response_model=FoodItemOut)
def get_meal(
    meal_id: str,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return FoodItemOut.of(menu.get_food_item(db, meal_id), now)


@router.patch("/meals/{meal_id}", response_model=FoodItemOut)
def update_meal(
    meal_id: str,
    payload: MealUpdateIn,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    item = menu.update_food_item(db, principal, meal_id, payload.model_dump(exclude_unset=True))
    return FoodItemOut.of(item, now)


@router.post("/meals/{meal_id}/availability", response_model=FoodItemOut)
def set_meal_availability(
    meal_id: str,
    payload: Optional[AvailabilityIn] = None,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    target = payload.available if payload else None
    return FoodItemOut.of(menu.set_availability(db, principal, meal_id, target), now)


@router.delete("/meals/{meal_id}", response_model=MessageOut)
def delete_meal(
    meal_id: str,
    type: Optional[str] = None,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
):
    if type == "image":
        menu.delete_food_item_images(db, principal, meal_id)
        return MessageOut(message="Images deleted successfully")

    menu.delete_food_item(db, principal, meal_id)
    return MessageOut(message="Meal deleted successfully")


# -------------------
# Browse / cooks / search (public)
# -------------------
@router.get("/browse/meals", response_model=List[FoodItemOut])
def browse_meals(db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    return [FoodItemOut.of(it, now, with_cook=True) for it in menu.browse(db)]


@router.get("/cooks/{cook_id}", response_model=CookProfileOut)
def cook_page(cook_id: str, db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    return _profile_out(menu.cook_profile(db, cook_id), now)


@router.get("/search", response_model=SearchOut)
def search_page(q: str = "", db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    found = search.search(db, q)
    return SearchOut(
        query=q,
        cooks=[
            CookSearchOut(
                id=c.id,
                name=c.name,
                bio=c.bio,
                image=c.image,
                rating=RatingOut.of(reviews.cook_rating(db, c.id)),
            )
            for c in found.cooks
        ],
        food_items=[FoodItemOut.of(it, now, with_cook=True) for it in found.food_items],
    )


# -------------------
# Orders
# -------------------
@router.post("/orders", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreateIn,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    order = orders.create_order(db, principal, [x.to_line() for x in payload.items], payload.total, now)
    return OrderOut.of(order)


@router.get("/orders/{order_id}", response_model=OrderOut)
def get_order(order_id: str, principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    return OrderOut.of(orders.get_order(db, principal, order_id))


@router.delete("/orders/{order_id}", response_model=OrderOut)
def cancel_order(order_id: str, principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    return OrderOut.of(orders.cancel_order(db, principal, order_id))


@router.patch("/orders/{order_id}", response_model=OrderOut)
def complete_order(
    order_id: str,
    payload: OrderStatusIn,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
):
    return OrderOut.of(orders.complete_order(db, principal, order_id, payload.status))


@router.get("/my-orders", response_model=List[OrderOut])
def my_orders(principal: Optional[Principal] = Depends(optional_principal), db: Session = Depends(get_db)):
    # not logged in is not an error here, just nothing to show
    if principal is None:
        return []
    return [OrderOut.of(o) for o in orders.list_for_eater(db, principal.user_id)]


@router.get("/cook/orders", response_model=List[OrderOut])
def cook_orders(principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    return [OrderOut.of(o, with_eater=True) for o in orders.list_pending_for_cook(db, principal)]


# -------------------
# Reviews
# -------------------
@router.post("/reviews", response_model=ReviewOut)
def create_review(payload: ReviewIn, principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    r = reviews.add_review(
        db,
        principal,
        rating=payload.rating,
        comment=payload.comment,
        cook_id=payload.cook_id,
        food_item_id=payload.food_item_id,
    )
    return ReviewOut.of(r)


@router.get("/reviews/rating", response_model=RatingOut)
def rating(
    cook_id: Optional[str] = Query(default=None, alias="cookId"),
    food_item_id: Optional[str] = Query(default=None, alias="foodItemId"),
    db: Session = Depends(get_db),
):
    return RatingOut.of(reviews.average_rating(db, cook_id=cook_id, food_item_id=food_item_id))


# -------------------
# Images
# -------------------
@router.post("/upload", response_model=ImageOut)
def upload_image(
    file: UploadFile = File(...),
    type: str = Form(...),
    food_item_id: Optional[str] = Form(default=None, alias="foodItemId"),
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    store: ImageStore = Depends(get_image_store),
):
    data = file.file.read()
    images.check_upload(
        db,
        principal,
        kind=type,
        content_type=file.content_type,
        size=len(data),
        max_bytes=settings.max_upload_bytes,
        food_item_id=food_item_id,
    )
    url = store.upload(data, folder=type, filename=file.filename, content_type=file.content_type)
    return ImageOut.of(images.record_upload(db, principal, url, type, food_item_id))


# -------------------
# Error mapping
# -------------------
async def _domain_error(request: Request, exc: DomainError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        where = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        problems.append(f"{where}: {err.get('msg')}" if where else str(err.get("msg")))
    body = InvalidInput("Invalid request: " + "; ".join(problems)).to_dict()
    return JSONResponse(status_code=400, content=body)


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    # full detail stays in the server log
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=Internal("An unexpected error occurred").to_dict())


# -------------------
# App factory
# -------------------
def create_app(settings: Optional[Settings] = None, image_store: Optional[ImageStore] = None) -> FastAPI:
    settings = settings or Settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Home Cooking Marketplace API", version="0.1.0")

    database = Database(settings.database_url)
    database.create_all()

    app.state.settings = settings
    app.state.database = database
    app.state.image_store = image_store or build_image_store(
        settings.s3_bucket, settings.aws_region, settings.image_base_url
    )
    app.state.clock = utcnow

    app.include_router(router)
    app.add_exception_handler(DomainError, _domain_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(Exception, _unexpected_error)

    return app


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(create_app(), host="0.0.0.0", port=port)
