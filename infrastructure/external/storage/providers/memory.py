"""In-memory object store and CDN control.

Single-process only. Useful for local dev and tests.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import AsyncIterator, Optional, Sequence
import hashlib

from ..base import ObjectStore, CdnControl
from ..config import VolumeConfig
from ..exceptions import CdnError, NotFoundError
from ..models import StorageObject, ObjectHead, InvalidationRequest
from ..volume import S3Volume


class _StoredObject:
    __slots__ = ("body", "extras", "last_modified")

    def __init__(self, body: bytes, extras: dict) -> None:
        self.body = body
        self.extras = extras
        self.last_modified = datetime.now(timezone.utc)


class InMemoryObjectStore(ObjectStore):
    def __init__(self, bucket: str = "memory", region: str = "us-east-1") -> None:
        self.bucket = bucket
        self.region = region
        self._objects: dict[str, _StoredObject] = {}

    async def put_object(self, key: str, body: bytes, metadata: Optional[dict] = None) -> None:  # type: ignore[override]
        self._objects[key] = _StoredObject(bytes(body), dict(metadata or {}))

    async def get_object(self, key: str) -> bytes:  # type: ignore[override]
        return self._get(key).body

    async def stream_object(self, key: str, chunk_size: int = 8192) -> AsyncIterator[bytes]:  # type: ignore[override]
        body = self._get(key).body
        for start in range(0, len(body), chunk_size):
            yield body[start:start + chunk_size]

    async def delete_object(self, key: str) -> None:  # type: ignore[override]
        self._objects.pop(key, None)

    async def copy_object(self, source_key: str, dest_key: str) -> None:  # type: ignore[override]
        src = self._get(source_key)
        self._objects[dest_key] = _StoredObject(src.body, dict(src.extras))

    async def list_objects(self, prefix: str = "", delimiter: Optional[str] = None) -> AsyncIterator[StorageObject]:  # type: ignore[override]
        # Snapshot so callers may mutate the store while iterating
        keys = sorted(k for k in self._objects if k.startswith(prefix))
        seen_prefixes: set[str] = set()
        for key in keys:
            if delimiter:
                rest = key[len(prefix):]
                cut = rest.find(delimiter)
                if cut >= 0:
                    common = prefix + rest[:cut + len(delimiter)]
                    if common not in seen_prefixes:
                        seen_prefixes.add(common)
                        yield StorageObject(key=common, is_prefix=True)
                    continue
            obj = self._objects.get(key)
            if obj is None:
                continue
            yield StorageObject(
                key=key,
                size=len(obj.body),
                etag=hashlib.md5(obj.body).hexdigest(),
                last_modified=obj.last_modified,
            )

    async def head_object(self, key: str) -> ObjectHead:  # type: ignore[override]
        obj = self._get(key)
        return ObjectHead(
            size=len(obj.body),
            etag=hashlib.md5(obj.body).hexdigest(),
            last_modified=obj.last_modified,
            content_type=obj.extras.get("ContentType"),
            cache_control=obj.extras.get("CacheControl"),
            storage_class=obj.extras.get("StorageClass"),
            metadata=dict(obj.extras.get("Metadata", {})),
        )

    async def head_bucket(self) -> None:  # type: ignore[override]
        return None

    async def presigned_url(self, key: str, expires_in: int = 3600) -> str:  # type: ignore[override]
        self._get(key)
        return f"memory://{self.bucket}/{key}?expires_in={expires_in}"

    async def list_buckets(self) -> list[str]:  # type: ignore[override]
        return [self.bucket]

    async def get_bucket_location(self, bucket: str) -> str:  # type: ignore[override]
        if bucket != self.bucket:
            raise NotFoundError(f"Bucket not found: {bucket}")
        return self.region

    def _get(self, key: str) -> _StoredObject:
        obj = self._objects.get(key)
        if obj is None:
            raise NotFoundError(f"Object not found: {key}")
        return obj


class InMemoryCdnControl(CdnControl):
    """Records invalidation requests; optionally fails them."""

    def __init__(self) -> None:
        self.requests: list[InvalidationRequest] = []
        self.fail_with: Optional[str] = None

    async def create_invalidation(self, distribution_id: str, paths: Sequence[str], caller_reference: str) -> None:  # type: ignore[override]
        if self.fail_with is not None:
            raise CdnError(self.fail_with)
        self.requests.append(
            InvalidationRequest(
                distribution_id=distribution_id,
                paths=tuple(paths),
                caller_reference=caller_reference,
            )
        )


async def build_memory_volume(config: VolumeConfig) -> S3Volume:
    """Build a volume over in-memory stores."""
    store = InMemoryObjectStore(config.bucket, config.region)
    cdn = InMemoryCdnControl() if config.cf_distribution_id else None
    return S3Volume(config, store, cdn)
