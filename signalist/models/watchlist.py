"""Pydantic models for the per-user watchlist."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class WatchlistItem(BaseModel):
    """One tracked ticker; serialized camelCase for the frontend."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(serialization_alias="userId")
    symbol: str
    company: str
    added_at: datetime | None = Field(default=None, serialization_alias="addedAt")

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class WatchlistAddRequest(BaseModel):
    """Body of POST /api/watchlist. Both fields are checked by the route."""

    symbol: str | None = None
    company: str | None = None
