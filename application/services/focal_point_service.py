"""Automatic focal point detection for newly stored assets."""
from __future__ import annotations

from typing import Optional

from application.ports.focal_point import (
    AssetSaved,
    AssetRecordRepository,
    FocalPointDetector,
    FocalPointSource,
)
from core.logging_config import get_logger

logger = get_logger(__name__)


def _clamp(value: float) -> float:
    return min(max(value, 0), 1)


def format_focal_point(x: float, y: float) -> str:
    """Serialize a focal point as ``"x;y"`` with both coordinates in [0, 1]."""
    return f"{_clamp(x)};{_clamp(y)}"


class FocalPointService:
    def __init__(self, detector: FocalPointDetector, records: AssetRecordRepository):
        self._detector = detector
        self._records = records

    async def handle_asset_saved(self, event: AssetSaved) -> Optional[str]:
        """Detect and store the focal point of a newly saved asset.

        Only new assets on volumes with ``auto_focal_point`` enabled are
        processed. Returns the stored value, or None when skipped.
        """
        if not event.is_new:
            return None

        volume = event.volume
        if not isinstance(volume, FocalPointSource) or not volume.auto_focal_point:
            return None

        full_path = volume.full_path(event.path)
        point = await self._detector.detect(full_path)
        if not point:
            logger.debug("No focal point detected", asset_id=event.asset_id, path=full_path)
            return None

        value = format_focal_point(point[0], point[1])
        await self._records.save_focal_point(event.asset_id, value)
        logger.info("Focal point stored", asset_id=event.asset_id, focal_point=value)
        return value
