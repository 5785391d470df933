"""
数据传输对象（DTO）- 应用层与表现层之间的数据传输
"""
from pydantic import BaseModel, Field, model_serializer
from typing import Optional
from datetime import datetime, timezone


class DTOBase(BaseModel):
    """Base DTO: unify datetime serialization to UTC-Z for all subclasses."""

    @model_serializer(mode="wrap")
    def _serialize_model(self, handler):  # type: ignore[override]
        data = handler(self)

        def convert(value):
            if isinstance(value, datetime):
                ts = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
                s = ts.astimezone(timezone.utc).isoformat()
                return s.replace("+00:00", "Z")
            if isinstance(value, list):
                return [convert(v) for v in value]
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return convert(data)


class BucketListRequestDTO(DTOBase):
    """桶列表查询DTO（凭据留空则使用环境凭据）"""
    key_id: Optional[str] = Field(None, description="AWS access key id")
    secret: Optional[str] = Field(None, description="AWS secret access key")


class BucketDTO(DTOBase):
    bucket: str
    region: str
    url_prefix: str


class VolumeOptionsDTO(DTOBase):
    """卷设置可选项"""
    storage_classes: dict[str, str]
    periods: dict[str, str]


class FileEntryDTO(DTOBase):
    path: str
    size: int = 0
    last_modified: Optional[datetime] = None
    is_directory: bool = False
    url: Optional[str] = None


class PublicUrlDTO(DTOBase):
    path: str
    url: str
