"""Pydantic schemas for user profiles."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserSummary(BaseModel):
    """Author info embedded in builds and comments."""

    id: str
    username: str
    image_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class UserOut(UserSummary):
    name: Optional[str] = None
    bio: Optional[str] = None
    favorite_class: Optional[str] = None
    favorite_weapon: Optional[str] = None
    created_at: Optional[datetime] = None


class UserStats(BaseModel):
    build_count: int
    published_build_count: int
    likes_received: int
    comments_received: int


class UserProfileOut(UserOut):
    stats: UserStats


class ProfileUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_.-]+$")
    bio: Optional[str] = Field(default=None, max_length=500)
    favorite_class: Optional[str] = Field(default=None, max_length=50)
    favorite_weapon: Optional[str] = Field(default=None, max_length=50)

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)
