from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from potmonitor.core.errors import StoreReadError, StoreWriteError
from potmonitor.models.entities import Pot, PotWarning

logger = logging.getLogger(__name__)

THRESHOLD_TYPES = ("min", "max")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _warning_dict(w: PotWarning) -> dict:
    return {
        "id": w.id,
        "pot_id": w.pot_id,
        "measurement_type": w.measurement_type,
        "threshold_type": w.threshold_type,
        "threshold_value": w.threshold_value,
        "measured_value": w.measured_value,
        "measurement_id": w.measurement_id,
        "created_at": w.created_at,
        "dismissed_at": w.dismissed_at,
    }


def create_warning(
    db: Session,
    *,
    pot_id: str,
    measurement_type: str,
    threshold_type: str,
    threshold_value: float,
    measured_value: float,
    measurement_id: str,
    created_at: datetime | None = None,
) -> dict:
    if threshold_type not in THRESHOLD_TYPES:
        raise ValueError(f"threshold_type must be one of {THRESHOLD_TYPES}, got {threshold_type!r}")

    warning = PotWarning(
        id=str(uuid.uuid4()),
        pot_id=pot_id,
        measurement_type=measurement_type,
        threshold_type=threshold_type,
        threshold_value=float(threshold_value),
        measured_value=float(measured_value),
        measurement_id=measurement_id,
        created_at=created_at or _utcnow(),
        dismissed_at=None,
    )
    try:
        db.add(warning)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreWriteError(f"Could not create warning for pot {pot_id}") from exc
    return _warning_dict(warning)


def get_warning(db: Session, warning_id: str) -> dict | None:
    try:
        warning = db.get(PotWarning, warning_id, populate_existing=True)
    except SQLAlchemyError as exc:
        raise StoreReadError(f"Could not read warning {warning_id}") from exc
    return _warning_dict(warning) if warning else None


def list_active_by_pot(db: Session, pot_id: str) -> list[dict]:
    stmt = (
        select(PotWarning)
        .where(PotWarning.pot_id == pot_id, PotWarning.dismissed_at.is_(None))
        .order_by(PotWarning.created_at.desc())
        .execution_options(populate_existing=True)
    )
    try:
        rows = db.scalars(stmt).all()
    except SQLAlchemyError as exc:
        raise StoreReadError(f"Could not list warnings for pot {pot_id}") from exc
    return [_warning_dict(w) for w in rows]


def list_active_by_node(db: Session, node_id: str) -> list[dict]:
    stmt = (
        select(PotWarning)
        .join(Pot, Pot.id == PotWarning.pot_id)
        .where(Pot.node_id == node_id, PotWarning.dismissed_at.is_(None))
        .order_by(PotWarning.created_at.desc())
        .execution_options(populate_existing=True)
    )
    try:
        rows = db.scalars(stmt).all()
    except SQLAlchemyError as exc:
        raise StoreReadError(f"Could not list warnings for node {node_id}") from exc
    return [_warning_dict(w) for w in rows]


def dismiss_warning(
    db: Session,
    warning_id: str,
    *,
    pot_id: str | None = None,
    now: datetime | None = None,
) -> bool:
    """Mark one active warning dismissed.

    Returns False when nothing changed: the warning does not exist, belongs to
    another pot, or was already dismissed. An existing ``dismissed_at`` is
    never overwritten.
    """
    stmt = (
        update(PotWarning)
        .where(PotWarning.id == warning_id, PotWarning.dismissed_at.is_(None))
        .values(dismissed_at=now or _utcnow())
        .execution_options(synchronize_session=False)
    )
    if pot_id is not None:
        stmt = stmt.where(PotWarning.pot_id == pot_id)

    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreWriteError(f"Could not dismiss warning {warning_id}") from exc
    return result.rowcount == 1


def dismiss_all(db: Session, pot_id: str, *, now: datetime | None = None) -> bool:
    stmt = (
        update(PotWarning)
        .where(PotWarning.pot_id == pot_id, PotWarning.dismissed_at.is_(None))
        .values(dismissed_at=now or _utcnow())
        .execution_options(synchronize_session=False)
    )
    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreWriteError(f"Could not dismiss warnings for pot {pot_id}") from exc

    logger.info("Dismissed %s active warning(s) on pot %s", result.rowcount, pot_id)
    return True
