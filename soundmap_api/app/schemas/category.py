"""Pydantic models for sound categories."""

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    name: str = Field(..., examples=["Nature"])
    color: str = Field(..., examples=["#00ff00"])


class CategoryRead(CategoryCreate):
    id: int

    model_config = {
        "from_attributes": True,
    }
