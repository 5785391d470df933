"""Object storage volume: entry point and lifecycle helpers."""
from functools import lru_cache

from core.config import settings
from core.logging_config import get_logger
from .base import ObjectStore, CdnControl
from .config import (
    ClientConfig,
    Credentials,
    StoreType,
    VolumeConfig,
    resolve_client_config,
)
from .discovery import load_bucket_list
from .exceptions import (
    StorageError,
    NotFoundError,
    TransportError,
    PermissionDeniedError,
    TransientError,
    ConfigurationError,
    CdnError,
    VolumeException,
    InvalidationError,
)
from .factory import create_volume, register_builder
from .models import (
    BucketDescriptor,
    FileEntry,
    InvalidationRequest,
    ObjectHead,
    StorageObject,
    WriteMetadata,
)
from .utils import period_list, storage_classes
from .volume import S3Volume

logger = get_logger(__name__)


@lru_cache
def get_volume_config() -> VolumeConfig:
    """Get volume configuration from settings.

    Assembles VolumeConfig from core.config.settings to maintain a
    single source of truth for configuration.
    """
    return VolumeConfig.from_settings(settings.volume)


async def init_volume() -> S3Volume:
    """Build the configured volume.

    The caller owns the returned instance (the app keeps it on
    ``app.state``); nothing is cached at module level.
    """
    config = get_volume_config()
    volume = await create_volume(config)
    logger.info("Volume initialized", store_type=config.type, bucket=config.bucket)
    return volume


__all__ = [
    # Lifecycle
    "get_volume_config",
    "init_volume",
    "create_volume",
    "register_builder",

    # Configuration
    "ClientConfig",
    "Credentials",
    "StoreType",
    "VolumeConfig",
    "resolve_client_config",

    # Capabilities
    "ObjectStore",
    "CdnControl",
    "S3Volume",
    "load_bucket_list",

    # Models
    "BucketDescriptor",
    "FileEntry",
    "InvalidationRequest",
    "ObjectHead",
    "StorageObject",
    "WriteMetadata",

    # Exceptions
    "StorageError",
    "NotFoundError",
    "TransportError",
    "PermissionDeniedError",
    "TransientError",
    "ConfigurationError",
    "CdnError",
    "VolumeException",
    "InvalidationError",

    # Utils
    "period_list",
    "storage_classes",
]
