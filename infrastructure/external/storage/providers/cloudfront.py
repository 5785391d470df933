"""AWS CloudFront invalidation control."""
from typing import Any, Sequence
import anyio
from functools import partial

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from core.logging_config import get_logger
from ..base import CdnControl
from ..config import ClientConfig
from ..exceptions import CdnError

logger = get_logger(__name__)


class CloudFrontCdnControl(CdnControl):
    """CDN control plane backed by a boto3 CloudFront client."""

    def __init__(self, client: Any):
        self.client = client

    async def create_invalidation(
        self,
        distribution_id: str,
        paths: Sequence[str],
        caller_reference: str
    ) -> None:
        items = list(paths)
        try:
            response = await anyio.to_thread.run_sync(
                partial(
                    self.client.create_invalidation,
                    DistributionId=distribution_id,
                    InvalidationBatch={
                        "Paths": {"Quantity": len(items), "Items": items},
                        "CallerReference": caller_reference,
                    }
                )
            )
        except ClientError as e:
            message = e.response.get("Error", {}).get("Message") or str(e)
            raise CdnError(message) from e
        except BotoCoreError as e:
            raise CdnError(str(e)) from e

        invalidation_id = (response or {}).get("Invalidation", {}).get("Id")
        logger.info(
            "CloudFront invalidation created",
            distribution_id=distribution_id,
            paths=items,
            invalidation_id=invalidation_id
        )


def build_cloudfront_control(
    client_config: ClientConfig,
    timeout: int = 30
) -> CloudFrontCdnControl:
    """Build CloudFront control from the volume's client config."""
    boto_config = BotoConfig(
        retries={"total_max_attempts": 1, "mode": "standard"},
        connect_timeout=timeout,
        read_timeout=timeout
    )
    kwargs = client_config.boto_kwargs()
    # CloudFront is a global service; a custom S3 endpoint does not apply
    kwargs.pop("endpoint_url", None)
    return CloudFrontCdnControl(boto3.client("cloudfront", config=boto_config, **kwargs))
