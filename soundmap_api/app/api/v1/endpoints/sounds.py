"""
Sound endpoints for API v1.

Sounds are uploaded as multipart forms with three fields:

* ``location`` – JSON ``{"lat": ..., "lng": ...}``
* ``category`` – category id or name
* ``uploaded_audio`` – the audio file

Listing supports the ``location`` (JSON ``{lat, lng, radius?}``),
``category``, ``username``, ``userId``, ``date`` (``YYYY-MM-DD``),
``limit`` and ``offset`` query parameters.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status
from fastapi.responses import PlainTextResponse

from soundmap_api.app.core.security import get_current_user
from soundmap_api.app.schemas.sound import SoundRead, SoundUpdate
from soundmap_api.app.services.sound_service import SoundService


router = APIRouter()

ALLOWED_METHODS = "GET, POST, PATCH, DELETE, OPTIONS"


@router.options("", status_code=status.HTTP_204_NO_CONTENT)
async def sounds_options() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers={"Allow": ALLOWED_METHODS})


@router.get("", response_model=List[SoundRead])
async def list_sounds(
    location: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    username: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None, alias="userId"),
    date: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    current_user: dict = Depends(get_current_user),
) -> List[SoundRead]:
    """List sounds matching every supplied filter, newest first.

    - **location**: nearby search; ``radius`` in metres is clamped to
      500…50000 and defaults to 50000.
    - **limit**: clamped to 1…100, default 10.
    - **offset**: number of results to skip, never negative.
    """
    return await SoundService.list_sounds(
        location=location,
        category=category,
        username=username,
        user_id=user_id,
        date_from=date,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=SoundRead, status_code=status.HTTP_201_CREATED)
async def create_sound(
    location: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    uploaded_audio: Optional[UploadFile] = File(None),
    current_user: dict = Depends(get_current_user),
) -> SoundRead:
    audio = await uploaded_audio.read() if uploaded_audio is not None else None
    content_type = uploaded_audio.content_type if uploaded_audio is not None else None
    return await SoundService.create_sound(current_user, location, category, audio, content_type)


@router.get("/data/{sound_id}")
async def get_sound_data(sound_id: str) -> Response:
    """Stream back the raw audio of a sound."""
    audio, content_type = await SoundService.get_audio(sound_id)
    return Response(content=audio, media_type=content_type)


@router.get("/{sound_id}", response_model=SoundRead)
async def get_sound(sound_id: str, current_user: dict = Depends(get_current_user)) -> SoundRead:
    return await SoundService.get_sound(sound_id)


@router.patch("/{sound_id}", response_model=SoundRead)
async def update_sound(
    sound_id: str,
    body: SoundUpdate,
    current_user: dict = Depends(get_current_user),
) -> SoundRead:
    """Move a sound to another category (owner or admin)."""
    return await SoundService.update_category(sound_id, body.category, current_user)


@router.delete("/{sound_id}", response_class=PlainTextResponse)
async def delete_sound(sound_id: str, current_user: dict = Depends(get_current_user)) -> str:
    """Delete a sound and its comments (owner or admin)."""
    await SoundService.delete_sound(sound_id, current_user)
    return "Sound successfully deleted"
