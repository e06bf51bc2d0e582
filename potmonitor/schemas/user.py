from __future__ import annotations

from potmonitor.schemas.common import ApiModel


class UserOut(ApiModel):
    username: str
    email: str
