"""Pydantic schemas for comments."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from buildhub.domain.users.schemas import UserSummary


class CommentForm(BaseModel):
    content: str = Field(min_length=3, max_length=500)

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class CommentOut(BaseModel):
    id: str
    content: str
    build_id: str
    user_id: str
    user: Optional[UserSummary] = None
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)
