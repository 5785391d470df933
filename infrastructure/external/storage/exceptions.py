"""Storage service exceptions."""
from typing import Optional


class StorageError(Exception):
    """Base storage exception."""
    pass


class NotFoundError(StorageError):
    """Object not found in storage."""
    pass


class TransportError(StorageError):
    """Object store failure (network, auth, service)."""
    pass


class PermissionDeniedError(TransportError):
    """Permission denied for storage operation."""
    pass


class TransientError(TransportError):
    """Transient error (network, rate limit, server error)."""
    pass


class ConfigurationError(StorageError):
    """Storage configuration error."""
    pass


class CdnError(StorageError):
    """CDN control plane rejected or failed a request."""
    pass


class VolumeException(StorageError):
    """Volume level failure."""
    pass


class InvalidationError(VolumeException):
    """CDN invalidation failed after the mutation itself succeeded.

    The data was already written (or removed); only the cached copies
    may be stale.
    """

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to invalidate the CDN path for {path}")
