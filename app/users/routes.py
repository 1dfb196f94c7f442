"""
User profile routes.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, ConfigDict, Field

from app.auth.routes import get_user_service
from app.documents.schemas import ProfileResponse
from vault_core.auth import get_auth_context, require_registered_user
from vault_core.auth.user_service import UserService
from vault_core.domain.auth import AuthContext
from vault_core.domain.exceptions import NotFoundError

router = APIRouter(prefix="/api/user", tags=["User"])


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, max_length=255)
    avatar: Optional[str] = Field(None, max_length=2048)


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    auth: AuthContext = Depends(get_auth_context),
    user_service: UserService = Depends(get_user_service),
):
    if auth.is_guest:
        return ProfileResponse(data=user_service.guest_profile(auth.user_id))

    user = user_service.get_by_id(auth.user_id)
    if not user:
        raise NotFoundError("User not found")
    return ProfileResponse(data=user)


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    changes: ProfileUpdate = Body(...),
    auth: AuthContext = Depends(require_registered_user),
    user_service: UserService = Depends(get_user_service),
):
    """Update display name and/or avatar."""
    user = user_service.update_profile(auth.user_id, name=changes.name, avatar=changes.avatar)
    if not user:
        raise NotFoundError("User not found")
    return ProfileResponse(data=user)
