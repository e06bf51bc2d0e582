from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from potmonitor.core.errors import StoreReadError
from potmonitor.models.entities import User, UserToken


def find_user_by_token(db: Session, token: str, *, now: datetime | None = None) -> dict | None:
    now = now or datetime.now(timezone.utc)
    stmt = (
        select(User)
        .join(UserToken, UserToken.user_id == User.id)
        .where(
            UserToken.token == token,
            or_(UserToken.expires_at.is_(None), UserToken.expires_at > now),
        )
        .limit(1)
    )
    try:
        user = db.scalars(stmt).first()
    except SQLAlchemyError as exc:
        raise StoreReadError("Could not look up user token") from exc
    if not user:
        return None
    return {"id": user.id, "username": user.username, "email": user.email}
