from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from potmonitor.schemas.common import ApiModel
from potmonitor.schemas.pot import PotOut


class NodeOut(ApiModel):
    id: str
    user_id: str | None = None
    name: str
    note: str = ""
    status: Literal["active", "inactive", "unknown"] = "unknown"
    data_archiving: str | None = None


class HeartbeatOut(ApiModel):
    node: NodeOut
    pots: list[PotOut]


class NodeErrorIn(ApiModel):
    code: str = Field(min_length=1)
    message: str = Field(min_length=1)
    severity: Literal["low", "medium", "high"] = "medium"
    timestamp: datetime | None = Field(default=None, description="ISO datetime")


class NodeErrorOut(ApiModel):
    id: str
    node_id: str
    code: str
    message: str
    severity: str
    timestamp: datetime
