from __future__ import annotations

from datetime import datetime

from pydantic import Field

from potmonitor.schemas.common import ApiModel


class MeasurementIn(ApiModel):
    timestamp: datetime = Field(description="ISO datetime")
    value: float = Field(ge=0, le=100)
    type: str = Field(min_length=1, max_length=64)


class MeasurementOut(ApiModel):
    id: str
    pot_id: str
    timestamp: datetime
    value: float
    type: str
