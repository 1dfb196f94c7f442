"""
Activity log routes.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.documents.dependencies import get_activity_recorder
from app.documents.schemas import ActivityListResponse
from app.documents.services.activity import DEFAULT_ACTIVITY_LIMIT, ActivityRecorder
from vault_core.auth import get_current_user_id

router = APIRouter(prefix="/api/activities", tags=["Activities"])


@router.get("", response_model=ActivityListResponse)
def list_activities(
    limit: int = DEFAULT_ACTIVITY_LIMIT,
    user_id: str = Depends(get_current_user_id),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
):
    """
    Most recent activity for the caller.

    ``limit`` defaults to 50 and is clamped to 1..200.
    """
    entries = recorder.list_for_user(user_id, limit)
    return ActivityListResponse(count=len(entries), data=entries)
