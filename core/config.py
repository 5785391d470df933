"""
配置文件 - 项目配置管理
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class VolumeSettings(BaseModel):
    type: str = "s3"  # s3, memory
    # Credentials; leave empty to use the ambient AWS credential chain
    key_id: str = ""
    secret: str = ""
    bucket: str = ""
    region: str = ""
    subfolder: str = ""
    # Public/CDN base URL of the bucket
    url: str = ""
    # Cache expiry as a relative interval, e.g. "1 month"
    expires: str = ""
    storage_class: str = ""
    cf_distribution_id: str = ""
    endpoint: Optional[str] = None
    auto_focal_point: bool = False
    # Advanced settings
    timeout: int = 30
    retry_attempts: int = 1


class Settings(BaseSettings):
    """项目配置"""

    # 基础配置
    PROJECT_NAME: str = Field(default="S3 Volume")
    VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=True)
    ENVIRONMENT: str = Field(default="development")
    API_PREFIX: str = Field(default="/api/v1")

    # CORS配置
    CORS_ORIGINS: list = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
    )

    volume: VolumeSettings = Field(default_factory=VolumeSettings)

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """允许 JSON 字符串或逗号分隔字符串两种格式。"""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    arr = json.loads(s)
                    if isinstance(arr, list):
                        return arr
                except ValueError:
                    pass
            if "," in s:
                return [item.strip() for item in s.split(",") if item.strip()]
            return [s]
        return v


settings = Settings()
