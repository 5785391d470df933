"""Application-owned ports for the automatic focal point hook.

Detection (image analysis) and record persistence live outside this
project; the hook only needs these minimal capabilities.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable


@dataclass
class AssetSaved:
    asset_id: int
    path: str  # Relative to the volume root
    is_new: bool
    volume: Any


@runtime_checkable
class FocalPointSource(Protocol):
    """Volume able to feed the focal point detector."""

    @property
    def auto_focal_point(self) -> bool: ...

    def full_path(self, path: str) -> str: ...


@runtime_checkable
class FocalPointDetector(Protocol):
    async def detect(self, full_path: str) -> Optional[tuple[float, float]]: ...


@runtime_checkable
class AssetRecordRepository(Protocol):
    async def save_focal_point(self, asset_id: int, focal_point: str) -> None: ...
