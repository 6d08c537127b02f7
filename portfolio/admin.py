"""
Admin pages for managing site content.

Everything here sits behind AdminGateMiddleware; handlers can assume
``request.state.user`` is an allowlisted admin.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import RedirectResponse

from portfolio.config import get_settings
from portfolio.db import BackendError, DbClient
from portfolio.dependencies import get_db_client, get_storage_client
from portfolio.gallery import (
    PHOTO_CATEGORIES,
    PHOTO_CATEGORY_VALUES,
    STATUS_OPTIONS,
    GalleryItem,
    join_tags,
    next_sort_order,
    normalise_anime,
    parse_tags,
)
from portfolio.storage import StorageClient, StorageError, build_upload_path, cover_path
from portfolio.templating import render_template

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin")

NEW_ANIME_DEFAULTS = {
    "title": "New anime",
    "status": "planned",
    "total_seasons": 1,
    "seasons_watched": 0,
    "is_favorite": False,
    "tags": [],
    "notes": "",
    "cover_url": None,
}


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


@router.get("")
def admin_home(request: Request):
    return render_template(request, "admin/index.html")


# -- anime ---------------------------------------------------------------


def _render_anime_admin(
    request: Request,
    db: DbClient,
    selected_id: Optional[str] = None,
    *,
    message: Optional[str] = None,
    error: Optional[str] = None,
    status_code: int = 200,
):
    try:
        rows = normalise_anime(db.list_anime())
    except BackendError as exc:
        logger.error("[admin/anime] load error: %s", exc)
        rows = []
        error = error or "Failed to load anime."
        status_code = max(status_code, 500)

    index = 0
    for i, row in enumerate(rows):
        if row.id == selected_id:
            index = i
            break
    current = rows[index] if rows else None
    context = {
        "rows": rows,
        "current": current,
        "prev_id": rows[index - 1].id if current and index > 0 else None,
        "next_id": rows[index + 1].id if current and index < len(rows) - 1 else None,
        "status_options": STATUS_OPTIONS,
        "message": message,
        "error": error,
    }
    return render_template(request, "admin/anime.html", context, status_code=status_code)


@router.get("/anime")
def anime_admin(
    request: Request,
    id: Optional[str] = Query(None),
    saved: bool = Query(False),
    db: DbClient = Depends(get_db_client),
):
    return _render_anime_admin(
        request, db, id, message="Changes saved." if saved else None
    )


@router.post("/anime")
def add_anime(request: Request, db: DbClient = Depends(get_db_client)):
    try:
        values = dict(NEW_ANIME_DEFAULTS, sort_order=next_sort_order(db.list_anime()))
        record = db.create_anime(values)
    except BackendError as exc:
        logger.error("[admin/anime] add error: %s", exc)
        return _render_anime_admin(
            request, db, error="Failed to add anime.", status_code=500
        )
    logger.info("[admin/anime] added %s", record.id)
    return _redirect(f"/admin/anime?id={record.id}")


@router.post("/anime/{anime_id}")
def save_anime(
    request: Request,
    anime_id: str,
    title: str = Form(...),
    status_value: str = Form("planned", alias="status"),
    seasons_watched: int = Form(0),
    total_seasons: int = Form(1),
    favorite: Optional[str] = Form(None),
    tags: str = Form(""),
    notes: str = Form(""),
    sort_order: int = Form(0),
    cover_url: str = Form(""),
    db: DbClient = Depends(get_db_client),
):
    values = {
        "title": title.strip() or "Untitled",
        "status": status_value,
        "total_seasons": max(1, total_seasons),
        "seasons_watched": max(0, seasons_watched),
        "is_favorite": favorite is not None,
        "tags": parse_tags(tags),
        "notes": notes,
        "sort_order": sort_order,
        "cover_url": cover_url.strip() or None,
    }
    try:
        record = db.update_anime(anime_id, values)
    except BackendError as exc:
        logger.error("[admin/anime] save error for %s: %s", anime_id, exc)
        return _render_anime_admin(
            request, db, anime_id, error="Failed to save changes.", status_code=500
        )
    if record is None:
        raise HTTPException(status_code=404, detail="Anime not found")
    return _redirect(f"/admin/anime?id={anime_id}&saved=1")


@router.post("/anime/{anime_id}/cover")
async def upload_cover(
    request: Request,
    anime_id: str,
    cover: UploadFile = File(...),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
):
    settings = get_settings()
    try:
        record = db.get_anime(anime_id)
    except BackendError as exc:
        logger.error("[admin/anime] load error for %s: %s", anime_id, exc)
        return _render_anime_admin(
            request, db, anime_id, error="Failed to upload image.", status_code=500
        )
    if record is None:
        raise HTTPException(status_code=404, detail="Anime not found")

    data = await cover.read()
    path = cover_path(anime_id, cover.filename or "")
    try:
        storage.upload(
            settings.anime_cover_bucket,
            path,
            data,
            content_type=cover.content_type,
            upsert=True,
        )
    except StorageError as exc:
        logger.error("[admin/anime] upload error for %s: %s", anime_id, exc)
        return _render_anime_admin(
            request, db, anime_id, error="Failed to upload image.", status_code=500
        )

    public_url = storage.public_url(settings.anime_cover_bucket, path)
    try:
        db.update_anime(anime_id, {"cover_url": public_url})
    except BackendError as exc:
        logger.error("[admin/anime] cover_url update error for %s: %s", anime_id, exc)
        return _render_anime_admin(
            request,
            db,
            anime_id,
            error="Uploaded, but failed to save URL.",
            status_code=500,
        )
    return _redirect(f"/admin/anime?id={anime_id}&saved=1")


# -- photos --------------------------------------------------------------


@router.get("/photos")
def photo_uploader(request: Request):
    return render_template(
        request,
        "admin/photos.html",
        {"categories": PHOTO_CATEGORIES, "category": "food", "log": [], "status": "idle"},
    )


def upload_photos(
    db: DbClient,
    storage: StorageClient,
    bucket: str,
    category: str,
    files: list[tuple[str, bytes, Optional[str]]],
) -> list[tuple[str, str]]:
    """
    Upload each file to the media bucket and insert its photos row.

    Returns one ``(level, message)`` log entry per file; a failure on one file
    does not stop the rest. An object whose row cannot be inserted is removed
    from the bucket again.
    """
    log: list[tuple[str, str]] = []
    for filename, data, content_type in files:
        base_name = os.path.splitext(filename)[0] or filename
        path = build_upload_path(category, filename, int(time.time() * 1000))
        try:
            image_path = storage.upload(bucket, path, data, content_type=content_type)
        except StorageError as exc:
            logger.error("[admin/photos] storage upload failed for %s: %s", filename, exc)
            log.append(("error", f"{filename}: storage upload failed - {exc}"))
            continue
        try:
            db.create_photo(
                {
                    "category": category,
                    "title": base_name,
                    "description": "",
                    "image_path": image_path,
                    "tags": [],
                }
            )
        except BackendError as exc:
            logger.error("[admin/photos] insert failed for %s: %s", filename, exc)
            log.append(("warning", f"{filename}: uploaded, but DB insert failed - {exc}"))
            try:
                storage.remove(bucket, image_path)
            except StorageError as remove_exc:
                logger.error(
                    "[admin/photos] cleanup of %s failed: %s", image_path, remove_exc
                )
            continue
        log.append(("ok", f"{filename}: uploaded and saved"))
    return log


@router.post("/photos")
async def photo_upload(
    request: Request,
    category: str = Form("food"),
    files: Optional[list[UploadFile]] = File(None),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
):
    settings = get_settings()
    context = {"categories": PHOTO_CATEGORIES, "category": category, "log": []}
    if category not in PHOTO_CATEGORY_VALUES:
        context.update(status="error", error="Unknown category.")
        return render_template(request, "admin/photos.html", context, status_code=400)

    uploads = []
    for upload in files or []:
        if not upload.filename:
            continue
        uploads.append((upload.filename, await upload.read(), upload.content_type))
    if not uploads:
        context.update(status="error", error="Pick at least one image file to upload.")
        return render_template(request, "admin/photos.html", context, status_code=400)

    log = upload_photos(db, storage, settings.media_bucket, category, uploads)
    failed = any(level == "error" for level, _ in log)
    context.update(log=log, status="error" if failed else "done")
    return render_template(request, "admin/photos.html", context)


def _render_photo_manager(
    request: Request,
    db: DbClient,
    category: str,
    *,
    row_messages: Optional[dict] = None,
    status_code: int = 200,
):
    settings = get_settings()
    error = None
    try:
        photos = db.list_photos(category=category)
    except BackendError as exc:
        logger.error("[admin/photos/manage] load error: %s", exc)
        photos = []
        error = str(exc)
        status_code = max(status_code, 500)
    rows = [
        {
            "photo": photo,
            "image_url": GalleryItem.from_photo(
                photo, settings.public_base_url, settings.media_bucket
            ).image_url,
            "tags_text": join_tags(photo.tags),
            "likes": photo.likes or 0,
            "views": photo.views or 0,
        }
        for photo in photos
    ]
    context = {
        "categories": PHOTO_CATEGORIES,
        "category": category,
        "rows": rows,
        "error": error,
        "row_messages": row_messages or {},
    }
    return render_template(request, "admin/photos_manage.html", context, status_code=status_code)


@router.get("/photos/manage")
def photo_manager(
    request: Request,
    category: str = Query("food"),
    saved: Optional[int] = Query(None),
    db: DbClient = Depends(get_db_client),
):
    if category not in PHOTO_CATEGORY_VALUES:
        category = "food"
    messages = {saved: ("ok", "Saved")} if saved is not None else None
    return _render_photo_manager(request, db, category, row_messages=messages)


@router.post("/photos/{photo_id}")
def save_photo(
    request: Request,
    photo_id: int,
    category: str = Form("food"),
    title: str = Form(""),
    description: str = Form(""),
    tags: str = Form(""),
    likes: int = Form(0),
    views: int = Form(0),
    db: DbClient = Depends(get_db_client),
):
    if category not in PHOTO_CATEGORY_VALUES:
        category = "food"
    values = {
        "title": title,
        "description": description,
        "tags": parse_tags(tags),
        "likes": max(0, likes),
        "views": max(0, views),
    }
    try:
        record = db.update_photo(photo_id, values)
    except BackendError as exc:
        logger.error("[admin/photos] update error for %s: %s", photo_id, exc)
        return _render_photo_manager(
            request,
            db,
            category,
            row_messages={photo_id: ("error", str(exc))},
            status_code=500,
        )
    if record is None:
        raise HTTPException(status_code=404, detail="Photo not found")
    return _redirect(f"/admin/photos/manage?category={category}&saved={photo_id}")
