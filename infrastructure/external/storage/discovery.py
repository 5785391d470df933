"""Bucket discovery for volume setup."""
from typing import Callable, Optional

from core.logging_config import get_logger
from .base import ObjectStore
from .config import ClientConfig, resolve_client_config
from .exceptions import StorageError
from .models import BucketDescriptor
from .providers.s3 import build_s3_store

logger = get_logger(__name__)

# Listing buckets is not region specific; any region will do
BOOTSTRAP_REGION = "us-east-1"

StoreBuilder = Callable[[ClientConfig], ObjectStore]


def bucket_url_prefix(bucket: str) -> str:
    return f"http://{bucket}.s3.amazonaws.com/"


def _default_store_builder(client_config: ClientConfig) -> ObjectStore:
    return build_s3_store(client_config)


async def load_bucket_list(
    key_id: Optional[str],
    secret: Optional[str],
    store_builder: Optional[StoreBuilder] = None,
) -> list[BucketDescriptor]:
    """List buckets visible to a key pair, with their regions.

    Buckets whose location cannot be read are left out; a failure to list
    buckets at all propagates.

    Args:
        key_id: Access key id, empty for ambient credentials
        secret: Secret access key, empty for ambient credentials
        store_builder: Builds the account level store, S3 by default

    Returns:
        One descriptor per accessible bucket
    """
    client_config = resolve_client_config(key_id, secret, BOOTSTRAP_REGION)
    store = (store_builder or _default_store_builder)(client_config)

    names = await store.list_buckets()
    buckets: list[BucketDescriptor] = []
    for name in names:
        try:
            region = await store.get_bucket_location(name)
        except StorageError as e:
            logger.debug("Skipping bucket without readable location", bucket=name, error=str(e))
            continue
        buckets.append(
            BucketDescriptor(
                bucket=name,
                region=region,
                url_prefix=bucket_url_prefix(name),
            )
        )

    logger.info("Bucket discovery finished", found=len(names), accessible=len(buckets))
    return buckets
