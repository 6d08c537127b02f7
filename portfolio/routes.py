"""
HTTP routes for the counter API.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from portfolio.db import BackendError, DbClient
from portfolio.dependencies import get_db_client
from portfolio.schemas import (
    AnimeLikeRequest,
    AnimeLikeResponse,
    AnimeViewRequest,
    AnimeViewResponse,
    HealthResponse,
    PhotoLikeRequest,
    PhotoLikeResponse,
    PhotoViewRequest,
    PhotoViewResponse,
    PhotoViewsRequest,
    PhotoViewsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok")


@router.post("/anime/like", response_model=AnimeLikeResponse)
def like_anime(payload: AnimeLikeRequest, db: DbClient = Depends(get_db_client)):
    """
    Apply a +1/-1 like toggle. The stored count never drops below zero.
    """
    try:
        likes = db.adjust_anime_likes(payload.id, payload.delta)
    except BackendError as exc:
        logger.error("[anime/like] update error for %s: %s", payload.id, exc)
        raise HTTPException(status_code=500, detail="Failed to update likes")
    if likes is None:
        logger.error("[anime/like] anime %s not found", payload.id)
        raise HTTPException(status_code=404, detail="Anime not found")
    return AnimeLikeResponse(likes=max(0, likes))


@router.post("/anime/view", response_model=AnimeViewResponse)
def view_anime(payload: AnimeViewRequest, db: DbClient = Depends(get_db_client)):
    try:
        views = db.increment_anime_views(payload.id)
    except BackendError as exc:
        logger.error("[anime/view] update error for %s: %s", payload.id, exc)
        raise HTTPException(status_code=500, detail="Failed to update views")
    if views is None:
        logger.error("[anime/view] anime %s not found", payload.id)
        raise HTTPException(status_code=404, detail="Anime not found")
    return AnimeViewResponse(views=max(0, views))


@router.post("/photos/view", response_model=PhotoViewResponse)
def view_photo(payload: PhotoViewRequest, db: DbClient = Depends(get_db_client)):
    # A missing row is not an error here; trackers fire for whatever was rendered.
    try:
        db.increment_photo_views(payload.id)
    except BackendError as exc:
        logger.error("[photos/view] update error for %s: %s", payload.id, exc)
        raise HTTPException(status_code=500, detail="Failed to update views")
    return PhotoViewResponse()


@router.post("/photos/views", response_model=PhotoViewsResponse)
def view_photos(payload: PhotoViewsRequest, db: DbClient = Depends(get_db_client)):
    try:
        updated = db.increment_photo_views_many(payload.ids)
    except BackendError as exc:
        logger.error("[photos/views] update error: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to update views")
    return PhotoViewsResponse(updated=updated)


@router.post("/photos/like", response_model=PhotoLikeResponse)
def like_photo(payload: PhotoLikeRequest, db: DbClient = Depends(get_db_client)):
    try:
        likes = db.adjust_photo_likes(payload.id, payload.delta)
    except BackendError as exc:
        logger.error("[photos/like] update error for %s: %s", payload.id, exc)
        raise HTTPException(status_code=500, detail="Failed to update likes")
    if likes is None:
        raise HTTPException(status_code=404, detail="Photo not found")
    return PhotoLikeResponse(likes=max(0, likes))
