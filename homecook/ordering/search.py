# homecook/ordering/search.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from ..models import FoodItem, Role, User
from .nlp import fuzzy_matches, normalize_text

logger = logging.getLogger(__name__)

MAX_RESULTS = 50


@dataclass
class SearchResults:
    cooks: List[User] = field(default_factory=list)
    food_items: List[FoodItem] = field(default_factory=list)


def _like(q: str) -> str:
    escaped = q.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _substring_search(db: Session, q: str) -> SearchResults:
    pattern = _like(q)
    cooks = (
        db.query(User)
        .options(selectinload(User.images))
        .filter(
            User.role == Role.COOK,
            or_(User.name.ilike(pattern, escape="\\"), User.bio.ilike(pattern, escape="\\")),
        )
        .order_by(User.name)
        .limit(MAX_RESULTS)
        .all()
    )
    items = (
        db.query(FoodItem)
        .options(selectinload(FoodItem.images), selectinload(FoodItem.cook))
        .filter(or_(FoodItem.name.ilike(pattern, escape="\\"), FoodItem.description.ilike(pattern, escape="\\")))
        .order_by(FoodItem.available.desc(), FoodItem.created_at.desc())
        .limit(MAX_RESULTS)
        .all()
    )
    return SearchResults(cooks=cooks, food_items=items)


def _fuzzy_search(db: Session, q: str) -> SearchResults:
    """Name-only fallback for typos ("lasagnia", "biriyani")."""
    out = SearchResults()

    cooks = db.query(User).filter(User.role == Role.COOK).all()
    cook_keys: Dict[str, List[User]] = {}
    for c in cooks:
        cook_keys.setdefault(normalize_text(c.name), []).append(c)

    items = db.query(FoodItem).options(selectinload(FoodItem.images), selectinload(FoodItem.cook)).all()
    item_keys: Dict[str, List[FoodItem]] = {}
    for it in items:
        item_keys.setdefault(normalize_text(it.name), []).append(it)

    # start strict, then slightly looser
    for cutoff in (0.80, 0.78, 0.75):
        for key in fuzzy_matches(list(cook_keys), q, cutoff=cutoff):
            out.cooks.extend(c for c in cook_keys[key] if c not in out.cooks)
        for key in fuzzy_matches(list(item_keys), q, cutoff=cutoff):
            out.food_items.extend(it for it in item_keys[key] if it not in out.food_items)
        if out.cooks or out.food_items:
            break

    out.cooks = out.cooks[:MAX_RESULTS]
    out.food_items = out.food_items[:MAX_RESULTS]
    return out


def search(db: Session, query: str) -> SearchResults:
    raw = (query or "").strip()
    if not raw:
        return SearchResults()

    results = _substring_search(db, raw)
    if results.cooks or results.food_items:
        return results

    q = normalize_text(raw)
    if q and q != raw.lower():
        results = _substring_search(db, q)
        if results.cooks or results.food_items:
            return results

    results = _fuzzy_search(db, q or raw.lower())
    logger.info("Search %r fell back to fuzzy matching: %s cooks, %s items", raw, len(results.cooks), len(results.food_items))
    return results
