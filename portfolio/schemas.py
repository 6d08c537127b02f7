"""
Pydantic schemas for the JSON counter API.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class AnimeLikeRequest(BaseModel):
    id: str = Field(..., min_length=1, max_length=64)
    delta: Literal[1, -1]


class AnimeLikeResponse(BaseModel):
    likes: int


class AnimeViewRequest(BaseModel):
    id: str = Field(..., min_length=1, max_length=64)


class AnimeViewResponse(BaseModel):
    views: int


class PhotoViewRequest(BaseModel):
    id: int = Field(..., ge=1)


class PhotoViewResponse(BaseModel):
    ok: Literal[True] = True


class PhotoViewsRequest(BaseModel):
    ids: list[int] = Field(..., min_length=1, max_length=200)


class PhotoViewsResponse(BaseModel):
    updated: int


class PhotoLikeRequest(BaseModel):
    id: int = Field(..., ge=1)
    delta: Literal[1, -1]


class PhotoLikeResponse(BaseModel):
    likes: int


class HealthResponse(BaseModel):
    status: Literal["ok"]
