"""Storage data transfer objects."""
from datetime import datetime
from typing import Optional, Any
from pydantic import BaseModel, ConfigDict, Field


class StorageObject(BaseModel):
    """Raw listing record returned by an object store."""
    key: str
    size: int = 0
    etag: Optional[str] = None
    last_modified: Optional[datetime] = None
    is_prefix: bool = False  # Common prefix (pseudo directory)


class ObjectHead(BaseModel):
    """Object metadata returned by a HEAD request."""
    size: int
    etag: Optional[str] = None
    last_modified: Optional[datetime] = None
    content_type: Optional[str] = None
    cache_control: Optional[str] = None
    storage_class: Optional[str] = None
    metadata: dict[str, str] = Field(default_factory=dict)


class FileEntry(BaseModel):
    """Volume listing entry, path relative to the volume root."""
    path: str
    size: int = 0
    last_modified: Optional[datetime] = None
    is_directory: bool = False


class WriteMetadata(BaseModel):
    """Per-write object metadata derived from volume settings."""
    model_config = ConfigDict(frozen=True)

    cache_control: Optional[str] = None
    storage_class: Optional[str] = None

    def as_put_kwargs(self) -> dict[str, Any]:
        """Render as S3 PutObject arguments, omitting unset fields."""
        kwargs: dict[str, Any] = {}
        if self.cache_control:
            kwargs["CacheControl"] = self.cache_control
        if self.storage_class:
            kwargs["StorageClass"] = self.storage_class
        return kwargs


class BucketDescriptor(BaseModel):
    """Bucket found during discovery."""
    bucket: str
    region: str
    url_prefix: str


class InvalidationRequest(BaseModel):
    """CDN invalidation batch."""
    model_config = ConfigDict(frozen=True)

    distribution_id: str
    paths: tuple[str, ...]
    caller_reference: str
