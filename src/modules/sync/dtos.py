"""Sync-timestamp DTOs."""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict


class SyncTimestampsDTO(BaseModel):
    """Current value per sync type; ``None`` when nothing was ever recorded."""

    model_config = ConfigDict(frozen=True)

    products: Optional[str] = None
    webphotos: Optional[str] = None

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {"products": self.products, "webphotos": self.webphotos}


class SyncWriteResult(BaseModel):
    """Which of the two locations accepted a ``set``."""

    model_config = ConfigDict(frozen=True)

    type: str
    timestamp: str
    local_written: bool
    shared_written: bool
