from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from potmonitor.schemas.common import ApiModel


class ThresholdBounds(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    min: float | None = None
    max: float | None = None


class PotOut(ApiModel):
    id: str
    node_id: str
    name: str
    note: str = ""
    status: Literal["active", "inactive", "unknown"] = "unknown"
    reporting_time: str | None = None
    thresholds: dict[str, ThresholdBounds] | None = None


class PotUpdate(ApiModel):
    name: str | None = Field(default=None, min_length=3, max_length=50)
    note: str | None = Field(default=None, max_length=200)
    reporting_time: str | None = None
    # Stored verbatim; min <= max is not enforced.
    thresholds: dict[str, ThresholdBounds] | None = None
