from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from potmonitor.core.errors import StoreWriteError
from potmonitor.services import pot_warnings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Threshold:
    min: float | None = None
    max: float | None = None

    @property
    def inert(self) -> bool:
        return self.min is None and self.max is None

    def as_dict(self) -> dict:
        out = {}
        if self.min is not None:
            out["min"] = self.min
        if self.max is not None:
            out["max"] = self.max
        return out


@dataclass
class EvaluationOutcome:
    measurement_id: str
    created: list[dict] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def _as_bound(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        value = float(value)
    except (OverflowError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_thresholds(raw: Any) -> dict[str, Threshold]:
    """Decode a pot's stored thresholds.

    Never raises. Missing, undecodable or non-mapping data yields an empty
    mapping so a corrupt pot config cannot block measurement ingestion.
    Entries that are not mappings are skipped and non-numeric bounds are
    treated as unset.
    """
    if raw is None:
        return {}

    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed thresholds payload")
            return {}

    if not isinstance(raw, dict):
        return {}

    parsed: dict[str, Threshold] = {}
    for measurement_type, entry in raw.items():
        if not isinstance(measurement_type, str) or not isinstance(entry, dict):
            continue
        parsed[measurement_type] = Threshold(
            min=_as_bound(entry.get("min")),
            max=_as_bound(entry.get("max")),
        )
    return parsed


def serialize_thresholds(thresholds: dict[str, Threshold] | None) -> str | None:
    if thresholds is None:
        return None
    return json.dumps({k: t.as_dict() for k, t in thresholds.items()}, sort_keys=True)


def find_breaches(value: float, threshold: Threshold) -> list[tuple[str, float]]:
    # Independent strict checks; an inverted config (min > max) can fire both.
    breaches: list[tuple[str, float]] = []
    if threshold.min is not None and value < threshold.min:
        breaches.append(("min", threshold.min))
    if threshold.max is not None and value > threshold.max:
        breaches.append(("max", threshold.max))
    return breaches


def evaluate_measurement(db: Session, measurement: dict, pot: dict) -> EvaluationOutcome:
    """Record a warning for every bound the measurement crosses.

    ``measurement`` is the freshly persisted row and ``pot`` its owner, already
    loaded by the caller. Failed warning writes are logged and collected in
    the outcome; they are not retried.
    """
    outcome = EvaluationOutcome(measurement_id=measurement["id"])

    threshold = parse_thresholds(pot.get("thresholds")).get(measurement["type"])
    if threshold is None or threshold.inert:
        return outcome

    for threshold_type, bound in find_breaches(measurement["value"], threshold):
        try:
            warning = pot_warnings.create_warning(
                db,
                pot_id=pot["id"],
                measurement_type=measurement["type"],
                threshold_type=threshold_type,
                threshold_value=bound,
                measured_value=measurement["value"],
                measurement_id=measurement["id"],
            )
        except StoreWriteError:
            logger.exception(
                "Failed to record %s warning for pot %s (measurement %s)",
                threshold_type,
                pot["id"],
                measurement["id"],
            )
            outcome.failed.append(threshold_type)
            continue

        logger.info(
            "Pot %s %s=%s breached %s threshold %s",
            pot["id"],
            measurement["type"],
            measurement["value"],
            threshold_type,
            bound,
        )
        outcome.created.append(warning)

    return outcome
