from __future__ import annotations

from datetime import datetime
from typing import Literal

from potmonitor.schemas.common import ApiModel


class WarningOut(ApiModel):
    id: str
    pot_id: str
    measurement_type: str
    threshold_type: Literal["min", "max"]
    threshold_value: float
    measured_value: float
    measurement_id: str
    created_at: datetime
    dismissed_at: datetime | None = None


class DismissAllOut(ApiModel):
    pot_id: str
    dismissed: bool
