"""
Domain models for the document vault.

These models describe documents, their storage locators, activity log
entries and user profiles. API payloads use camelCase field names while
Python code works with snake_case attributes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Category(str, Enum):
    IDENTITY = "identity"
    FINANCIAL = "financial"
    MEDICAL = "medical"
    INSURANCE = "insurance"
    LEGAL = "legal"
    PERSONAL = "personal"
    TRAVEL = "travel"
    OTHER = "other"


class DocumentType(str, Enum):
    PDF = "pdf"
    IMAGE = "image"
    LICENSE = "license"
    INSURANCE = "insurance"
    OTHER = "other"


class FileType(str, Enum):
    """Canonical file type derived from the upload's MIME type."""

    PDF = "pdf"
    JPG = "jpg"
    PNG = "png"
    WEBP = "webp"
    GIF = "gif"

    @property
    def is_image(self) -> bool:
        return self is not FileType.PDF

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @classmethod
    def from_mime(cls, mime_type: str | None) -> Optional["FileType"]:
        """Map a MIME type to a FileType, or None when it is not recognised."""
        return _MIME_TO_FILE_TYPE.get(normalize_mime(mime_type))


_MIME_TO_FILE_TYPE = {
    "application/pdf": FileType.PDF,
    "image/jpeg": FileType.JPG,
    "image/jpg": FileType.JPG,
    "image/png": FileType.PNG,
    "image/webp": FileType.WEBP,
    "image/gif": FileType.GIF,
}


def normalize_mime(mime_type: str | None) -> str:
    """Lowercase a MIME type and drop parameters such as ``;charset=utf-8``."""
    if not mime_type:
        return ""
    return mime_type.split(";", 1)[0].strip().lower()


class ResourceKind(str, Enum):
    """Provider hint: raw binaries are never transformed, images may be."""

    RAW = "raw"
    IMAGE = "image"
    AUTO = "auto"

    @classmethod
    def for_file_type(cls, file_type: FileType) -> "ResourceKind":
        return cls.IMAGE if file_type.is_image else cls.RAW


class StorageKind(str, Enum):
    REMOTE = "remote"
    LOCAL = "local"


class ActivityAction(str, Enum):
    UPLOAD = "upload"
    VIEW = "view"
    DOWNLOAD = "download"
    DELETE = "delete"
    RENAME = "rename"
    ARCHIVE = "archive"


# =============================================================================
# Storage locators
# =============================================================================


@dataclass(frozen=True)
class RemoteLocator:
    """Blob held by the remote object store."""

    public_url: str
    delete_key: str
    resource_kind: ResourceKind
    kind: Literal["remote"] = "remote"


@dataclass(frozen=True)
class LocalLocator:
    """Blob held on local disk, relative to the storage root."""

    relative_path: str
    kind: Literal["local"] = "local"

    @property
    def resource_kind(self) -> ResourceKind:
        return ResourceKind.AUTO


StorageLocator = Union[RemoteLocator, LocalLocator]


def locator_key(locator: StorageLocator) -> str:
    """The string persisted in ``documents.storage_locator``."""
    if isinstance(locator, RemoteLocator):
        return locator.delete_key
    return locator.relative_path


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    """Strip tags, drop empties and collapse duplicates, keeping first-seen order."""
    if not tags:
        return []
    cleaned = (str(tag).strip() for tag in tags)
    return list(dict.fromkeys(tag for tag in cleaned if tag))


# =============================================================================
# Documents
# =============================================================================


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentMetadata(CamelModel):
    issuer: Optional[str] = None
    expiry_date: Optional[date] = None
    notes: Optional[str] = None
    document_number: Optional[str] = None

    @field_validator("expiry_date", mode="before")
    @classmethod
    def _date_from_timestamp(cls, value):
        # Browsers serialize dates as full ISO timestamps; keep the calendar date
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str) and "T" in value:
            return value.split("T", 1)[0]
        return value


class NewDocument(CamelModel):
    """Fields computed by the ingestion pipeline before the row exists."""

    user_id: str
    name: str
    type: DocumentType
    category: Category
    file_type: FileType
    size: int = Field(..., ge=0)
    tags: list[str] = Field(default_factory=list)
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)
    thumbnail_url: Optional[str] = None
    file_url: str
    storage_kind: StorageKind
    storage_locator: str
    storage_resource_kind: ResourceKind = ResourceKind.AUTO

    @field_validator("tags", mode="before")
    @classmethod
    def _dedupe_tags(cls, value):
        return normalize_tags(value)


class Document(NewDocument):
    """A catalogued document. Bytes live in the storage backend."""

    id: str
    is_archived: bool = False
    is_favorite: bool = False
    created_at: datetime
    updated_at: datetime

    @property
    def locator(self) -> StorageLocator:
        if self.storage_kind == StorageKind.REMOTE:
            return RemoteLocator(
                public_url=self.file_url,
                delete_key=self.storage_locator,
                resource_kind=self.storage_resource_kind,
            )
        return LocalLocator(relative_path=self.storage_locator)

    @classmethod
    def from_db_row(cls, row: dict) -> "Document":
        """Construct a Document from a dict_row result."""
        return cls(
            id=str(row["document_id"]),
            user_id=str(row["user_id"]),
            name=row["name"],
            type=row["type"],
            category=row["category"],
            file_type=row["file_type"],
            size=row["size"],
            tags=row["tags"] or [],
            metadata=row["metadata"] or {},
            thumbnail_url=row["thumbnail_url"],
            file_url=row["file_url"],
            storage_kind=row["storage_kind"],
            storage_locator=row["storage_locator"],
            storage_resource_kind=row["storage_resource_kind"],
            is_archived=row["is_archived"],
            is_favorite=row["is_favorite"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


def matches_search(document: NewDocument, term: str) -> bool:
    """Case-insensitive substring match over name, tags, issuer and notes (OR)."""
    needle = term.lower()
    if needle in document.name.lower():
        return True
    if any(needle in tag.lower() for tag in document.tags):
        return True
    issuer = document.metadata.issuer
    if issuer and needle in issuer.lower():
        return True
    notes = document.metadata.notes
    return bool(notes and needle in notes.lower())


class DocumentFilters(BaseModel):
    category: Optional[Category] = None
    is_favorite: Optional[bool] = None
    is_archived: bool = False
    search: Optional[str] = None


class DocumentUpdate(CamelModel):
    """Mutable document fields. Storage fields can only change by re-upload."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[Category] = None
    tags: Optional[list[str]] = None
    metadata: Optional[DocumentMetadata] = None
    is_archived: Optional[bool] = None
    is_favorite: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Name cannot be empty")
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _dedupe_tags(cls, value):
        return None if value is None else normalize_tags(value)


# =============================================================================
# Activity, users, stats
# =============================================================================


class ActivityLogEntry(CamelModel):
    id: str
    user_id: str
    action: ActivityAction
    document_id: str
    document_name: str = Field(..., description="Name at the time of the action")
    created_at: datetime

    @classmethod
    def from_db_row(cls, row: dict) -> "ActivityLogEntry":
        return cls(
            id=str(row["activity_id"]),
            user_id=str(row["user_id"]),
            action=row["action"],
            document_id=str(row["document_id"]),
            document_name=row["document_name"],
            created_at=row["created_at"],
        )


class UserProfile(CamelModel):
    """Serializable user view. The password hash never leaves UserService."""

    id: str
    name: str
    email: str
    avatar: Optional[str] = None
    storage_used: int = 0
    storage_limit: int
    is_guest: bool = False
    created_at: Optional[datetime] = None


class StorageStats(CamelModel):
    used: int
    limit: int
    document_count: int
    category_breakdown: dict[str, int]
