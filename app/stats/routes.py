"""
Storage statistics routes.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.documents.dependencies import get_document_service
from app.documents.schemas import StatsResponse
from app.documents.services.document_service import DocumentService
from vault_core.auth import get_auth_context
from vault_core.domain.auth import AuthContext

router = APIRouter(prefix="/api/stats", tags=["Stats"])


@router.get("", response_model=StatsResponse)
def get_stats(
    auth: AuthContext = Depends(get_auth_context),
    service: DocumentService = Depends(get_document_service),
):
    """Storage used and limit plus per-category counts of non-archived documents."""
    if auth.is_guest:
        return StatsResponse(data=service.guest_stats())
    return StatsResponse(data=service.stats(auth.user_id))
