from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from potmonitor.core.config import settings
from potmonitor.core.errors import StoreReadError, StoreWriteError
from potmonitor.models.entities import Measurement
from potmonitor.services.thresholds import evaluate_measurement

logger = logging.getLogger(__name__)


def _measurement_dict(m: Measurement) -> dict:
    return {
        "id": m.id,
        "pot_id": m.pot_id,
        "timestamp": m.timestamp,
        "value": m.value,
        "type": m.type,
    }


def create_measurement(db: Session, pot_id: str, timestamp: datetime, value: float, type: str) -> dict:
    measurement = Measurement(
        id=str(uuid.uuid4()),
        pot_id=pot_id,
        timestamp=timestamp,
        value=float(value),
        type=type,
    )
    try:
        db.add(measurement)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreWriteError(f"Could not store measurement for pot {pot_id}") from exc
    return _measurement_dict(measurement)


def list_measurements(
    db: Session,
    pot_id: str,
    time_start: datetime | None = None,
    time_end: datetime | None = None,
) -> list[dict]:
    stmt = select(Measurement).where(Measurement.pot_id == pot_id)
    if time_start is not None:
        stmt = stmt.where(Measurement.timestamp >= time_start)
    if time_end is not None:
        stmt = stmt.where(Measurement.timestamp <= time_end)
    stmt = stmt.order_by(Measurement.timestamp.desc()).limit(settings.measurement_list_limit)
    try:
        rows = db.scalars(stmt).all()
    except SQLAlchemyError as exc:
        raise StoreReadError(f"Could not list measurements for pot {pot_id}") from exc
    return [_measurement_dict(m) for m in rows]


def record_measurement(
    db: Session,
    pot: dict,
    *,
    timestamp: datetime,
    value: float,
    type: str,
) -> dict:
    """Store a device reading, then check it against the pot's thresholds.

    The measurement is committed before evaluation starts. Anything that goes
    wrong while recording warnings is logged and never reaches the caller.
    """
    measurement = create_measurement(db, pot["id"], timestamp, value, type)

    try:
        outcome = evaluate_measurement(db, measurement, pot)
    except Exception:
        logger.exception("Threshold evaluation failed for measurement %s", measurement["id"])
    else:
        if outcome.failed:
            logger.warning(
                "Measurement %s: %s warning(s) recorded, %s failed",
                measurement["id"],
                len(outcome.created),
                len(outcome.failed),
            )
    return measurement
