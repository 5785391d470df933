"""Filesystem volume over an object store.

Maps volume-relative paths onto object keys under an optional subfolder,
applies the write metadata policy and purges CDN caches after mutations.
Object stores have no directories and no rename: directories are key
prefixes and renames are copy-then-delete.
"""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Callable, Iterable, Optional, Union

import aiofiles

from core.logging_config import get_logger
from .base import ObjectStore, CdnControl
from .config import VolumeConfig
from .exceptions import (
    CdnError,
    ConfigurationError,
    InvalidationError,
    NotFoundError,
    StorageError,
    VolumeException,
)
from .models import FileEntry, ObjectHead, InvalidationRequest, WriteMetadata
from .utils import (
    build_write_metadata,
    caller_reference,
    cdn_path,
    guess_content_type,
    join_key,
    root_url,
    strip_subfolder,
)

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parent_dirs(path: str, root: str) -> list[str]:
    """Directories between ``root`` (exclusive) and ``path`` (exclusive)."""
    parts = path.split("/")[:-1]
    start = len(root.split("/")) if root else 0
    return ["/".join(parts[:i]) for i in range(start + 1, len(parts) + 1)]


class S3Volume:
    """Volume backed by an object store bucket."""

    def __init__(
        self,
        config: VolumeConfig,
        store: ObjectStore,
        cdn: Optional[CdnControl] = None,
        clock: Optional[Clock] = None
    ):
        """Initialize volume.

        Args:
            config: Volume configuration
            store: Object store for the configured bucket
            cdn: CDN control, required when a distribution id is set
            clock: Source of "now" for cache expiry computation
        """
        if config.cf_distribution_id and cdn is None:
            raise ConfigurationError(
                "CDN control is required when a distribution id is configured"
            )
        self.config = config
        self.store = store
        self.cdn = cdn
        self._clock = clock or _utcnow

    @property
    def subfolder(self) -> str:
        return self.config.subfolder

    @property
    def auto_focal_point(self) -> bool:
        return self.config.auto_focal_point

    # Paths and URLs
    def full_path(self, path: str) -> str:
        """Remote object key for a volume-relative path."""
        return join_key(self.subfolder, path)

    def get_root_path(self) -> None:
        """Remote volumes have no local root."""
        return None

    def get_root_url(self) -> str:
        return root_url(self.config.url, self.subfolder)

    def get_public_url(self, path: str) -> str:
        return self.get_root_url() + path.lstrip("/")

    async def get_presigned_url(self, path: str, expires_in: int = 3600) -> str:
        """Signed URL for buckets without public access."""
        return await self.store.presigned_url(self.full_path(path), expires_in)

    def write_metadata(self) -> WriteMetadata:
        return build_write_metadata(
            self.config.expires, self.config.storage_class, self._clock()
        )

    # Files
    async def read(self, path: str) -> bytes:
        return await self.store.get_object(self.full_path(path))

    def read_stream(self, path: str, chunk_size: int = 8192) -> AsyncIterator[bytes]:
        return self.store.stream_object(self.full_path(path), chunk_size)

    async def write(
        self,
        path: str,
        contents: bytes,
        metadata: Optional[dict] = None
    ) -> None:
        """Upload a file and purge its CDN copy.

        Args:
            path: Volume-relative path
            contents: File body
            metadata: PutObject extras (e.g. ``ContentType``); these win over
                the derived cache and storage class settings
        """
        key = self.full_path(path)
        extras = {"ContentType": guess_content_type(path)}
        extras.update(self.write_metadata().as_put_kwargs())
        if metadata:
            extras.update(metadata)

        await self.store.put_object(key, contents, extras)
        logger.info("Volume file written", path=path, key=key, size=len(contents))

        await self.invalidate_cdn_path(path)

    async def delete(self, path: str) -> None:
        """Delete a file; missing files count as deleted."""
        key = self.full_path(path)
        try:
            await self.store.delete_object(key)
        except NotFoundError:
            logger.debug("Volume file already absent", path=path, key=key)
        await self.invalidate_cdn_path(path)

    async def copy(self, src: str, dst: str) -> None:
        await self.store.copy_object(self.full_path(src), self.full_path(dst))
        await self.invalidate_cdn_path(dst)

    async def rename(self, src: str, dst: str) -> None:
        """Move a file.

        Renaming a path onto itself is a no-op.

        Not atomic: if deleting the source fails after the copy, both
        copies remain and the error propagates.
        """
        if self.full_path(src) == self.full_path(dst):
            return
        await self._move(src, dst)
        await self._invalidate_all([dst, src])

    async def _move(self, src: str, dst: str) -> None:
        src_key = self.full_path(src)
        dst_key = self.full_path(dst)
        await self.store.copy_object(src_key, dst_key)
        await self.store.delete_object(src_key)
        logger.info("Volume file renamed", src=src, dst=dst)

    async def exists(self, path: str) -> bool:
        try:
            await self.store.head_object(self.full_path(path))
        except NotFoundError:
            return False
        return True

    async def get_metadata(self, path: str) -> ObjectHead:
        return await self.store.head_object(self.full_path(path))

    async def get_file_size(self, path: str) -> int:
        return (await self.get_metadata(path)).size

    async def get_date_modified(self, path: str) -> Optional[datetime]:
        return (await self.get_metadata(path)).last_modified

    async def save_file_locally(self, path: str, target: Union[str, Path]) -> int:
        """Download a file to the local filesystem.

        Returns:
            Number of bytes written
        """
        target_path = Path(target)
        target_path.parent.mkdir(parents=True, exist_ok=True)

        written = 0
        async with aiofiles.open(target_path, "wb") as f:
            async for chunk in self.read_stream(path):
                await f.write(chunk)
                written += len(chunk)

        logger.info("Volume file saved locally", path=path, target=str(target_path), size=written)
        return written

    # Listing and directories
    async def list(
        self,
        prefix: str = "",
        recursive: bool = False
    ) -> AsyncIterator[FileEntry]:
        """List entries under a directory.

        Every call takes a fresh listing. Directories come from common key
        prefixes, from intermediate key segments when recursive, and from
        zero-byte ``dir/`` marker objects.
        """
        root = prefix.strip("/")
        base = self._dir_key(root)
        seen_dirs: set[str] = set()

        def directories(dir_path: str) -> Iterable[FileEntry]:
            # Recursive listings also report every unseen ancestor below root
            chain = _parent_dirs(dir_path + "/", root) if recursive else [dir_path]
            for candidate in chain:
                if candidate not in seen_dirs:
                    seen_dirs.add(candidate)
                    yield FileEntry(path=candidate, is_directory=True)

        async for obj in self.store.list_objects(base, None if recursive else "/"):
            if obj.key == base:
                continue
            rel = strip_subfolder(self.subfolder, obj.key)
            if obj.is_prefix or rel.endswith("/"):
                for entry in directories(rel.rstrip("/")):
                    yield entry
                continue
            parent = rel.rsplit("/", 1)[0] if "/" in rel else ""
            if recursive and parent:
                for entry in directories(parent):
                    yield entry
            yield FileEntry(
                path=rel,
                size=obj.size,
                last_modified=obj.last_modified,
            )

    async def create_dir(self, path: str) -> None:
        """Create an empty directory marker object."""
        await self.store.put_object(self._dir_key(path.strip("/")), b"", {})

    async def folder_exists(self, path: str) -> bool:
        async for _ in self.store.list_objects(self._dir_key(path.strip("/"))):
            return True
        return False

    async def delete_dir(self, path: str) -> None:
        """Delete a directory and everything below it."""
        keys = await self._snapshot_keys(path)
        purged = []
        for key in keys:
            await self.store.delete_object(key)
            if not key.endswith("/"):
                purged.append(strip_subfolder(self.subfolder, key))
        logger.info("Volume directory deleted", path=path, objects=len(keys))
        await self._invalidate_all(purged)

    async def rename_dir(self, src: str, dst: str) -> None:
        """Move every object under ``src`` to ``dst``."""
        src_root = self._dir_key(src.strip("/"))
        dst_root = self._dir_key(dst.strip("/"))
        keys = await self._snapshot_keys(src)
        if src_root == dst_root:
            return
        purged = []
        for key in keys:
            new_key = dst_root + key[len(src_root):]
            await self.store.copy_object(key, new_key)
            await self.store.delete_object(key)
            if not key.endswith("/"):
                purged.append(strip_subfolder(self.subfolder, new_key))
                purged.append(strip_subfolder(self.subfolder, key))
        logger.info("Volume directory renamed", src=src, dst=dst, objects=len(keys))
        await self._invalidate_all(purged)

    def _dir_key(self, path: str) -> str:
        key = self.full_path(path)
        return key + "/" if key else ""

    async def _snapshot_keys(self, path: str) -> list[str]:
        if not path.strip("/"):
            raise VolumeException("Refusing to operate on the volume root")
        prefix = self._dir_key(path.strip("/"))
        return [obj.key async for obj in self.store.list_objects(prefix)]

    # CDN
    async def invalidate_cdn_path(self, path: str) -> bool:
        """Purge a path from the CDN, if one is configured.

        Raises:
            InvalidationError: The control plane rejected the request
        """
        if not self.config.cf_distribution_id:
            return True

        request = InvalidationRequest(
            distribution_id=self.config.cf_distribution_id,
            paths=(cdn_path(path),),
            caller_reference=caller_reference(),
        )
        try:
            await self.cdn.create_invalidation(
                request.distribution_id, request.paths, request.caller_reference
            )
        except CdnError as e:
            logger.warning("CDN invalidation failed", path=path, error=str(e))
            raise InvalidationError(path, str(e)) from e

        return True

    async def _invalidate_all(self, paths: list[str]) -> None:
        """Invalidate each path; raise the first failure after trying all."""
        first_error: Optional[InvalidationError] = None
        for path in paths:
            try:
                await self.invalidate_cdn_path(path)
            except InvalidationError as e:
                first_error = first_error or e
        if first_error is not None:
            raise first_error

    async def health_check(self) -> bool:
        """Check bucket connectivity."""
        try:
            await self.store.head_bucket()
        except StorageError as e:
            logger.error("Volume health check failed", bucket=self.config.bucket, error=str(e))
            return False
        logger.info("Volume health check passed", bucket=self.config.bucket)
        return True
