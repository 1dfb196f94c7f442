"""
Document routes.

This module handles the document endpoints:
- Upload, list, get, update and delete documents
- Toggle archive and favorite flags
- Download document bytes
- Serve locally stored files to their owner
"""

from __future__ import annotations

import json
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Form, Request, UploadFile
from fastapi.responses import FileResponse, RedirectResponse
from loguru import logger
from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool

from app.documents.dependencies import get_document_service, get_pipeline, get_storage_service
from app.documents.schemas import DocumentListResponse, DocumentResponse, MessageResponse
from app.documents.services.document_service import DocumentService
from app.documents.services.pipeline import IngestionPipeline, UploadRequest
from app.documents.services.storage_protocol import StorageBackend
from vault_core.auth import get_auth_context, get_current_user_id
from vault_core.domain.auth import AuthContext
from vault_core.domain.exceptions import NotFoundError, ValidationError
from vault_core.domain.models import (
    Category,
    DocumentFilters,
    DocumentMetadata,
    DocumentType,
    DocumentUpdate,
    LocalLocator,
    StorageKind,
)
from vault_core.runtime.errors import ServiceError

router = APIRouter(prefix="/api/documents", tags=["Documents"])
files_router = APIRouter(tags=["Files"])


def _parse_tags(raw: Optional[str], request_id: str) -> list[str]:
    if not raw:
        return []
    try:
        tags = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"[{request_id}] Ignoring unparseable tags field")
        return []
    if not isinstance(tags, list):
        logger.warning(f"[{request_id}] Ignoring non-list tags field")
        return []
    return [str(tag) for tag in tags]


def _parse_metadata(raw: Optional[str], request_id: str) -> DocumentMetadata:
    if not raw:
        return DocumentMetadata()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"[{request_id}] Ignoring unparseable metadata field")
        return DocumentMetadata()
    if not isinstance(data, dict):
        logger.warning(f"[{request_id}] Ignoring non-object metadata field")
        return DocumentMetadata()

    try:
        return DocumentMetadata.model_validate(data)
    except PydanticValidationError as e:
        invalid = _invalid_metadata_keys(e)
        logger.warning(f"[{request_id}] Dropping invalid metadata keys: {sorted(invalid)}")

    try:
        return DocumentMetadata.model_validate({k: v for k, v in data.items() if k not in invalid})
    except PydanticValidationError as e:
        logger.warning(f"[{request_id}] Ignoring metadata field: {e}")
        return DocumentMetadata()


def _invalid_metadata_keys(error: PydanticValidationError) -> set[str]:
    """Input keys (alias or field name) named by a metadata validation error."""
    keys = set()
    for detail in error.errors():
        if not detail.get("loc"):
            continue
        key = str(detail["loc"][0])
        keys.add(key)
        for name, field in DocumentMetadata.model_fields.items():
            if key in (name, field.alias):
                keys.update({name, field.alias})
    keys.discard(None)
    return keys


def _parse_enum(enum_cls, raw: Optional[str], label: str):
    if not raw:
        return None
    try:
        return enum_cls(raw.strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid {label}: {raw}")


async def _read_bounded(file: UploadFile, pipeline: IngestionPipeline, auth: AuthContext) -> bytes:
    """
    Read at most MAX_FILE_SIZE + 1 bytes of the upload.

    A declared size over the limit is rejected before anything is read.
    Guests skip the early check so they get the guest error from the pipeline.
    """
    if file.size is not None and not auth.is_guest:
        pipeline.ensure_within_size_limit(file.size)
    return await file.read(pipeline.settings.MAX_FILE_SIZE + 1)


@router.post("", response_model=DocumentResponse, status_code=201)
async def upload_document(
    request: Request,
    file: Optional[UploadFile] = File(default=None),
    name: Optional[str] = Form(default=None),
    category: Optional[str] = Form(default=None),
    type: Optional[str] = Form(default=None),
    tags: Optional[str] = Form(default=None),
    metadata: Optional[str] = Form(default=None),
    auth: AuthContext = Depends(get_auth_context),
    pipeline: IngestionPipeline = Depends(get_pipeline),
):
    """
    Upload a document.

    Multipart fields ``tags`` and ``metadata`` are JSON-encoded strings.
    """
    request_id = auth.request_id
    content = await _read_bounded(file, pipeline, auth) if file is not None else None
    upload = UploadRequest(
        user_id=auth.user_id,
        content=content,
        mime_type=file.content_type if file is not None else None,
        filename=file.filename if file is not None else None,
        name=name,
        type=_parse_enum(DocumentType, type, "document type"),
        category=_parse_enum(Category, category, "category"),
        tags=_parse_tags(tags, request_id),
        metadata=_parse_metadata(metadata, request_id),
        is_guest=auth.is_guest,
        request_id=request_id,
    )

    # The upload is only logged once we know the client is still there to receive it
    document = await run_in_threadpool(pipeline.ingest, upload, False)

    if await request.is_disconnected():
        logger.warning(f"[{request_id}] Client disconnected before upload response; discarding")
        await run_in_threadpool(pipeline.discard, auth.user_id, document.id)
    else:
        await run_in_threadpool(pipeline.record_upload, auth.user_id, document)

    return DocumentResponse(data=document)


@router.get("", response_model=DocumentListResponse)
def list_documents(
    category: Optional[Category] = None,
    favorite: Optional[bool] = None,
    archived: bool = False,
    search: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    service: DocumentService = Depends(get_document_service),
):
    """
    List the caller's documents, newest first.

    ``favorite=true`` narrows to favorites; ``favorite=false`` lists everything.
    """
    filters = DocumentFilters(
        category=category,
        is_favorite=True if favorite else None,
        is_archived=archived,
        search=search,
    )
    documents = service.list(user_id, filters)
    return DocumentListResponse(count=len(documents), data=documents)


@router.get("/{document_id}", response_model=DocumentResponse)
def get_document(
    document_id: str,
    user_id: str = Depends(get_current_user_id),
    service: DocumentService = Depends(get_document_service),
):
    return DocumentResponse(data=service.get(user_id, document_id))


@router.put("/{document_id}", response_model=DocumentResponse)
def update_document(
    document_id: str,
    changes: DocumentUpdate = Body(...),
    user_id: str = Depends(get_current_user_id),
    service: DocumentService = Depends(get_document_service),
):
    """Update name, category, tags, metadata or the archive/favorite flags."""
    return DocumentResponse(data=service.update(user_id, document_id, changes))


@router.delete("/{document_id}", response_model=MessageResponse)
def delete_document(
    document_id: str,
    user_id: str = Depends(get_current_user_id),
    pipeline: IngestionPipeline = Depends(get_pipeline),
):
    pipeline.delete(user_id, document_id)
    return MessageResponse(success=True, message="Document deleted successfully")


@router.post("/{document_id}/archive", response_model=DocumentResponse)
def toggle_archive(
    document_id: str,
    user_id: str = Depends(get_current_user_id),
    service: DocumentService = Depends(get_document_service),
):
    return DocumentResponse(data=service.toggle_archive(user_id, document_id))


@router.post("/{document_id}/favorite", response_model=DocumentResponse)
def toggle_favorite(
    document_id: str,
    user_id: str = Depends(get_current_user_id),
    service: DocumentService = Depends(get_document_service),
):
    return DocumentResponse(data=service.toggle_favorite(user_id, document_id))


@router.get("/{document_id}/download")
def download_document(
    document_id: str,
    user_id: str = Depends(get_current_user_id),
    service: DocumentService = Depends(get_document_service),
):
    """
    Download a document.

    Remote documents redirect to a short-lived presigned URL; local ones
    are streamed as an attachment.
    """
    target = service.prepare_download(user_id, document_id)
    if target.url is not None:
        return RedirectResponse(target.url, status_code=307)

    if not target.path.is_file():
        raise NotFoundError("File not found on server")

    document = target.document
    extension = document.file_type.extension
    filename = document.name if document.name.lower().endswith(extension) else f"{document.name}{extension}"
    return FileResponse(target.path, filename=filename)


@files_router.get("/uploads/{owner_id}/{filename}")
def serve_local_file(
    owner_id: str,
    filename: str,
    user_id: str = Depends(get_current_user_id),
    storage: StorageBackend = Depends(get_storage_service),
):
    """Serve a locally stored file to its owner. Anyone else gets 404."""
    if storage.kind != StorageKind.LOCAL or owner_id != user_id:
        raise NotFoundError("File not found")

    try:
        path = storage.locate(LocalLocator(relative_path=f"{owner_id}/{filename}"))
    except ServiceError:
        raise NotFoundError("File not found")

    if not path.is_file():
        raise NotFoundError("File not found")
    return FileResponse(path)
