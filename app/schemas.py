"""Pydantic schemas for the HTTP API layer and stored readings."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from models.records import Reading


class ReadingRecord(BaseModel):
    """A reading as persisted in the store and returned by the history endpoint."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    timestamp: int = Field(..., description="Epoch milliseconds; bucket start when aggregated.")
    temperature: float
    humidity: float
    device_id: Optional[str] = Field(
        default=None,
        alias="deviceId",
        description="Device identifier, comma-joined when a bucket merged several devices.",
    )

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingRecord":
        return cls(
            timestamp=reading.timestamp,
            temperature=reading.temperature,
            humidity=reading.humidity,
            device_id=reading.device_id,
        )

    def to_reading(self) -> Reading:
        return Reading(
            timestamp=self.timestamp,
            temperature=self.temperature,
            humidity=self.humidity,
            device_id=self.device_id or None,
        )


class WriteResponse(BaseModel):
    """Response payload after a reading has been stored."""

    success: bool = True
    key: str = Field(..., description="Storage key the reading was written under.")
