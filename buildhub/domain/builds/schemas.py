"""Pydantic schemas for build operations."""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from buildhub.domain.users.schemas import UserSummary

BuildType = Literal[
    "strength",
    "dexterity",
    "quality",
    "intelligence",
    "faith",
    "arcane",
    "hybrid",
    "bleed",
    "frost",
    "poison",
    "lightning",
    "fire",
    "holy",
    "other",
]

BuildSort = Literal["newest", "oldest", "popular", "comments"]

StatFilter = Literal[
    "high-vigor",
    "high-strength",
    "high-dexterity",
    "high-intelligence",
    "high-faith",
    "high-arcane",
    "balanced",
]

StatValue = Annotated[int, Field(ge=1, le=99)]


class BuildForm(BaseModel):
    """Schema for creating or replacing a build."""

    title: str = Field(min_length=3, max_length=100)
    description: str = Field(min_length=10, max_length=1000)
    level: int = Field(ge=1, le=713)
    build_type: Optional[BuildType] = None

    vigor: StatValue
    mind: StatValue
    endurance: StatValue
    strength: StatValue
    dexterity: StatValue
    intelligence: StatValue
    faith: StatValue
    arcane: StatValue

    weapons: list[str] = Field(min_length=1)
    armor: list[str] = Field(default_factory=list)
    talismans: list[str] = Field(default_factory=list)
    spells: list[str] = Field(default_factory=list)

    is_published: bool = True

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class BuildCounts(BaseModel):
    likes: int = 0
    comments: int = 0


class BuildOut(BaseModel):
    id: str
    user_id: str
    title: str
    description: str
    level: int
    build_type: Optional[str]
    vigor: int
    mind: int
    endurance: int
    strength: int
    dexterity: int
    intelligence: int
    faith: int
    arcane: int
    weapons: list[str]
    armor: list[str]
    talismans: list[str]
    spells: list[str]
    is_published: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class BuildListItem(BuildOut):
    user: Optional[UserSummary] = None
    counts: BuildCounts = Field(default_factory=BuildCounts)


class BuildPage(BaseModel):
    builds: list[BuildListItem]
    total_pages: int
    current_page: int
    total_builds: int
