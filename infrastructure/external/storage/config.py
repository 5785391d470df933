"""Volume configuration models and client config resolution."""
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .exceptions import ConfigurationError


API_VERSION = "latest"


class StoreType(str, Enum):
    """Object store backends."""
    S3 = "s3"
    MEMORY = "memory"


class Credentials(BaseModel):
    """Explicit access key pair."""
    model_config = ConfigDict(frozen=True)

    key: str
    secret: str

    def __repr__(self) -> str:
        return f"Credentials(key={self.key!r}, secret='***')"


class ClientConfig(BaseModel):
    """Resolved configuration for SDK clients."""
    model_config = ConfigDict(frozen=True)

    credentials: Optional[Credentials] = None
    region: str = ""
    version: str = API_VERSION
    endpoint: Optional[str] = None

    def boto_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``boto3.client``.

        Credentials are only passed when explicitly configured so that the
        default credential chain (environment, shared files, instance roles)
        applies otherwise.
        """
        kwargs: dict[str, Any] = {}
        if self.region:
            kwargs["region_name"] = self.region
        if self.credentials is not None:
            kwargs["aws_access_key_id"] = self.credentials.key
            kwargs["aws_secret_access_key"] = self.credentials.secret
        if self.endpoint:
            kwargs["endpoint_url"] = self.endpoint
        return kwargs


def resolve_client_config(
    key_id: Optional[str] = None,
    secret: Optional[str] = None,
    region: Optional[str] = None,
    endpoint: Optional[str] = None,
) -> ClientConfig:
    """Build a client config from a key pair and region.

    Args:
        key_id: Access key id, empty for ambient credentials
        secret: Secret access key, empty for ambient credentials
        region: Region name, may be empty
        endpoint: Custom S3-compatible endpoint

    Returns:
        Immutable client configuration
    """
    credentials = None
    if key_id and secret:
        credentials = Credentials(key=key_id, secret=secret)

    return ClientConfig(
        credentials=credentials,
        region=region or "",
        version=API_VERSION,
        endpoint=endpoint or None,
    )


class VolumeConfig(BaseModel):
    """Immutable volume configuration."""
    model_config = ConfigDict(frozen=True)

    type: str = StoreType.S3.value  # Resolved against the builder registry
    key_id: str = ""
    secret: str = ""
    bucket: str = ""
    region: str = ""
    subfolder: str = ""
    url: str = ""  # Public/CDN base URL
    expires: str = ""  # Relative interval, e.g. "1 month"
    storage_class: str = ""
    cf_distribution_id: str = ""
    endpoint: Optional[str] = None
    auto_focal_point: bool = False

    # Advanced settings
    timeout: int = 30
    retry_attempts: int = 1

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, v):
        if isinstance(v, StoreType):
            return v.value
        return (v or StoreType.S3.value).strip().lower()

    @field_validator(
        "key_id", "secret", "bucket", "region", "url", "expires",
        "storage_class", "cf_distribution_id",
        mode="before",
    )
    @classmethod
    def _strip(cls, v):
        return (v or "").strip()

    @field_validator("subfolder", mode="before")
    @classmethod
    def _normalize_subfolder(cls, v):
        return (v or "").strip().strip("/")

    def ensure_valid(self) -> "VolumeConfig":
        """Reject configs that cannot back a live volume."""
        missing = [name for name in ("bucket", "region") if not getattr(self, name)]
        if missing:
            raise ConfigurationError(
                f"Volume settings missing required fields: {', '.join(missing)}"
            )
        return self

    def client_config(self) -> ClientConfig:
        return resolve_client_config(
            self.key_id, self.secret, self.region, self.endpoint
        )

    @classmethod
    def from_settings(cls, s: Any) -> "VolumeConfig":
        """Assemble from the ``volume`` settings group.

        Raises:
            ConfigurationError: If a setting has an unusable value
        """
        try:
            return cls(
                type=s.type,
                key_id=s.key_id,
                secret=s.secret,
                bucket=s.bucket,
                region=s.region,
                subfolder=s.subfolder,
                url=s.url,
                expires=s.expires,
                storage_class=s.storage_class,
                cf_distribution_id=s.cf_distribution_id,
                endpoint=s.endpoint,
                auto_focal_point=s.auto_focal_point,
                timeout=s.timeout,
                retry_attempts=s.retry_attempts,
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid volume settings: {e}") from e

    def __repr__(self) -> str:
        return (
            f"VolumeConfig(type={self.type!r}, bucket={self.bucket!r}, "
            f"region={self.region!r}, subfolder={self.subfolder!r})"
        )
