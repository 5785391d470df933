"""卷设置与浏览相关路由。"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_volume
from application.dto import (
    BucketDTO,
    BucketListRequestDTO,
    FileEntryDTO,
    PublicUrlDTO,
    VolumeOptionsDTO,
)
from core.response import (
    Listing,
    Response as ApiResponse,
    listing_response,
    success_response,
)
from infrastructure.external.storage import (
    S3Volume,
    load_bucket_list,
    period_list,
    storage_classes,
)


router = APIRouter(
    prefix="/volume",
    tags=["卷"],
)


@router.post(
    "/buckets",
    summary="列出凭据可访问的桶",
    response_model=ApiResponse[list[BucketDTO]],
)
async def list_buckets(payload: BucketListRequestDTO):
    buckets = await load_bucket_list(payload.key_id, payload.secret)
    data = [BucketDTO(**b.model_dump()) for b in buckets]
    return success_response(data=data)


@router.get(
    "/options",
    summary="卷设置可选项",
    response_model=ApiResponse[VolumeOptionsDTO],
)
async def volume_options():
    return success_response(
        data=VolumeOptionsDTO(storage_classes=storage_classes(), periods=period_list())
    )


@router.get(
    "/files",
    summary="列出目录内容",
    response_model=ApiResponse[Listing[FileEntryDTO]],
)
async def list_files(
    prefix: str = Query("", description="目录路径（相对卷根）"),
    recursive: bool = Query(False, description="是否递归"),
    volume: S3Volume = Depends(get_volume),
):
    entries = []
    async for entry in volume.list(prefix, recursive=recursive):
        entries.append(
            FileEntryDTO(
                **entry.model_dump(),
                url=None if entry.is_directory else volume.get_public_url(entry.path),
            )
        )
    return listing_response(entries, prefix, recursive)


@router.get(
    "/url",
    summary="获取文件公开URL",
    response_model=ApiResponse[PublicUrlDTO],
)
async def public_url(
    path: str = Query(..., min_length=1, description="文件路径（相对卷根）"),
    volume: S3Volume = Depends(get_volume),
):
    return success_response(data=PublicUrlDTO(path=path, url=volume.get_public_url(path)))
