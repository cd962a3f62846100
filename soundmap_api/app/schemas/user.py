"""
Pydantic models for user data.

The password is accepted on input only; ``UserRead`` never carries it.
Field level rules (length, format, uniqueness) are enforced by the
explicit validators in ``services.validation`` so that every failure
is reported with the same message format.
"""

from typing import Optional

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    """Schema for registering a user."""

    username: str = Field(..., examples=["Jules"])
    email: str = Field(..., examples=["jules@example.com"])
    password: str = Field(..., examples=["Test1234"])


class UserUpdate(BaseModel):
    """Schema for patching a user.

    ``username`` is declared so that an attempt to change it can be
    detected and refused; it is never applied.
    """

    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class UserLogin(BaseModel):
    email: str
    password: str


class UserSummary(BaseModel):
    """Identity embedded in sounds and comments."""

    id: int
    username: str


class UserRead(UserSummary):
    """Schema for reading a user from the API."""

    email: str
    is_admin: bool = False

    model_config = {
        "from_attributes": True,
    }
