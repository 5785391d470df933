"""
API依赖项 - 卷实例获取
"""
from fastapi import HTTPException, Request, status

from infrastructure.external.storage import S3Volume


async def get_volume(request: Request) -> S3Volume:
    """FastAPI dependency for the configured volume.

    Raises:
        HTTPException: If the volume failed to initialize at startup
    """
    volume = getattr(request.app.state, "volume", None)
    if volume is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Volume not initialized; check volume settings",
        )
    return volume
