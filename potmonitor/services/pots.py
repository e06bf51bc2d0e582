from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from potmonitor.core.errors import StoreReadError, StoreWriteError
from potmonitor.models.entities import Pot

UPDATABLE_FIELDS = ("name", "note", "reporting_time", "thresholds")


def _pot_dict(p: Pot) -> dict:
    return {
        "id": p.id,
        "node_id": p.node_id,
        "name": p.name,
        "note": p.note,
        "status": p.status,
        "reporting_time": p.reporting_time,
        "thresholds": p.thresholds,
        "created_at": p.created_at,
    }


def get_pot(db: Session, pot_id: str) -> dict | None:
    try:
        pot = db.get(Pot, pot_id, populate_existing=True)
    except SQLAlchemyError as exc:
        raise StoreReadError(f"Could not read pot {pot_id}") from exc
    return _pot_dict(pot) if pot else None


def list_pots_by_node(db: Session, node_id: str) -> list[dict]:
    stmt = select(Pot).where(Pot.node_id == node_id).order_by(Pot.created_at)
    try:
        pots = db.scalars(stmt).all()
    except SQLAlchemyError as exc:
        raise StoreReadError(f"Could not list pots for node {node_id}") from exc
    return [_pot_dict(p) for p in pots]


def update_pot(db: Session, pot_id: str, fields: dict) -> dict | None:
    """Apply ``fields`` to a pot. ``thresholds`` must already be serialized."""
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValueError(f"Cannot update pot fields: {sorted(unknown)}")

    try:
        pot = db.get(Pot, pot_id)
    except SQLAlchemyError as exc:
        raise StoreReadError(f"Could not read pot {pot_id}") from exc
    if not pot:
        return None

    for name, value in fields.items():
        setattr(pot, name, value)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreWriteError(f"Could not update pot {pot_id}") from exc
    return _pot_dict(pot)
