"""
Public HTML pages plus the login/logout form handlers.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Query, Request, status
from fastapi.responses import RedirectResponse

from portfolio.auth import AuthClient, AuthError
from portfolio.config import get_settings
from portfolio.db import BackendError, DbClient
from portfolio.dependencies import get_auth_client, get_db_client
from portfolio.gallery import (
    ANIME_PREVIEW_IMAGES,
    BUSINESS_THREADS,
    FALLBACK_CARS,
    FALLBACK_FOOD,
    GalleryItem,
    group_anime,
    normalise_anime,
)
from portfolio.middleware import (
    ACCESS_COOKIE,
    clear_session_cookies,
    set_session_cookies,
)
from portfolio.templating import render_template

logger = logging.getLogger(__name__)

router = APIRouter()

HOME_PREVIEW_LIMIT = 3
GALLERY_LIMIT = 50


def load_gallery(
    db: DbClient,
    category: str,
    limit: int,
    fallback: Optional[list[GalleryItem]] = None,
) -> list[GalleryItem]:
    """Latest photos in a category, or the fallback list when there are none."""
    settings = get_settings()
    try:
        photos = db.list_photos(category=category, limit=limit)
    except BackendError as exc:
        logger.error("[%s] load error: %s", category, exc)
        photos = []
    if not photos:
        return list(fallback or [])
    return [
        GalleryItem.from_photo(photo, settings.public_base_url, settings.media_bucket)
        for photo in photos
    ]


def safe_next_path(value: Optional[str], default: str = "/admin") -> str:
    # Only local paths; "//host" would be treated as protocol-relative.
    if not value or not value.startswith("/") or value.startswith("//"):
        return default
    return value


@router.get("/")
def home(request: Request, db: DbClient = Depends(get_db_client)):
    food = load_gallery(db, "food", HOME_PREVIEW_LIMIT, FALLBACK_FOOD)
    cars = load_gallery(db, "car", HOME_PREVIEW_LIMIT, FALLBACK_CARS)
    return render_template(
        request,
        "home.html",
        {
            "food_items": food[:HOME_PREVIEW_LIMIT],
            "car_items": cars[:HOME_PREVIEW_LIMIT],
            # keeps the row looking full with a single car photo
            "car_placeholders": 2 if len(cars) == 1 else 0,
            "anime_previews": ANIME_PREVIEW_IMAGES,
        },
    )


@router.get("/food")
def food(request: Request, db: DbClient = Depends(get_db_client)):
    items = load_gallery(db, "food", GALLERY_LIMIT, FALLBACK_FOOD)
    return render_template(request, "food.html", {"items": items})


@router.get("/cars")
def cars(request: Request, db: DbClient = Depends(get_db_client)):
    items = load_gallery(db, "car", GALLERY_LIMIT, FALLBACK_CARS)
    tracked_ids = [item.id for item in items if item.trackable]
    return render_template(
        request, "cars.html", {"items": items, "tracked_ids": tracked_ids}
    )


@router.get("/anime")
def anime(request: Request, db: DbClient = Depends(get_db_client)):
    try:
        records = db.list_anime()
    except BackendError as exc:
        logger.error("[anime] load error: %s", exc)
        records = []
    rows = normalise_anime(records)
    return render_template(
        request,
        "anime.html",
        {"sections": group_anime(rows), "total": len(rows)},
    )


@router.get("/photos")
def photo_library(request: Request, db: DbClient = Depends(get_db_client)):
    settings = get_settings()
    try:
        photos = db.list_photos()
    except BackendError as exc:
        logger.error("[photos] load error: %s", exc)
        photos = []
    items = [
        (photo, GalleryItem.from_photo(photo, settings.public_base_url, settings.media_bucket))
        for photo in photos
    ]
    return render_template(request, "photos.html", {"items": items})


@router.get("/business")
def business(request: Request):
    return render_template(request, "business.html", {"threads": BUSINESS_THREADS})


@router.get("/discuss")
def discuss(request: Request):
    return render_template(request, "discuss.html", {"noindex": True})


@router.get("/login")
def login_form(request: Request, next: Optional[str] = Query(None)):
    return render_template(
        request, "login.html", {"next": safe_next_path(next), "error": None, "email": ""}
    )


@router.post("/login")
def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    next: Optional[str] = Form(None),
    auth: AuthClient = Depends(get_auth_client),
):
    next_path = safe_next_path(next)
    try:
        session = auth.sign_in_with_password(email, password)
    except AuthError as exc:
        logger.info("[login] sign-in failed for %s: %s", email, exc)
        return render_template(
            request,
            "login.html",
            {"next": next_path, "error": str(exc), "email": email},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    response = RedirectResponse(next_path, status_code=status.HTTP_303_SEE_OTHER)
    set_session_cookies(response, session, get_settings().session_cookie_secure)
    return response


@router.post("/logout")
def logout(request: Request, auth: AuthClient = Depends(get_auth_client)):
    access_token = request.cookies.get(ACCESS_COOKIE)
    if access_token:
        auth.sign_out(access_token)
    response = RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
    clear_session_cookies(response)
    return response
