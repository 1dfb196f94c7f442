"""
Pydantic schemas for the documents API.

Every response uses the ``{success, data}`` envelope; list responses add
``count`` and errors carry ``message`` instead of ``data``.
"""

from __future__ import annotations

from pydantic import BaseModel

from vault_core.domain.models import ActivityLogEntry, Document, StorageStats, UserProfile


class DocumentResponse(BaseModel):
    success: bool = True
    data: Document


class DocumentListResponse(BaseModel):
    success: bool = True
    count: int
    data: list[Document]


class MessageResponse(BaseModel):
    success: bool
    message: str


class ActivityListResponse(BaseModel):
    success: bool = True
    count: int
    data: list[ActivityLogEntry]


class StatsResponse(BaseModel):
    success: bool = True
    data: StorageStats


class ProfileResponse(BaseModel):
    success: bool = True
    data: UserProfile
