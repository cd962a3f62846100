"""Pydantic models for comments on sounds."""

from typing import Optional

from pydantic import BaseModel, Field

from .user import UserSummary


class CommentCreate(BaseModel):
    sound: int = Field(..., examples=[1])
    text: Optional[str] = Field(None, examples=["Lovely birds"])


class CommentUpdate(BaseModel):
    text: Optional[str] = Field(None, examples=["Lovely birds at dawn"])


class CommentRead(BaseModel):
    id: int
    sound: int
    author: UserSummary
    text: str
    created_at: str
