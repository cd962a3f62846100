"""
Pydantic models for sounds.

Sounds are created from a multipart form (see the sounds endpoint), so
there is no ``SoundCreate`` body schema.  The audio bytes are served
separately by ``GET /sounds/data/{id}`` and never appear in JSON.
"""

from typing import List

from pydantic import BaseModel, Field

from .category import CategoryRead
from .user import UserSummary


class Location(BaseModel):
    lat: float = Field(..., examples=[46.7785])
    lng: float = Field(..., examples=[6.6412])


class SoundUpdate(BaseModel):
    """Only the category of a sound can be changed."""

    category: str = Field(..., examples=["Nature"])


class SoundRead(BaseModel):
    id: int
    user: UserSummary
    category: CategoryRead
    location: Location
    created_at: str
    # Comment ids in creation order.
    comments: List[int] = []
