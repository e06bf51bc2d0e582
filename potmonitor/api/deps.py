from __future__ import annotations

from fastapi import HTTPException
from sqlalchemy.orm import Session

from potmonitor.core.auth import AuthUser
from potmonitor.services.nodes import find_node_by_id
from potmonitor.services.pots import get_pot
from potmonitor.services.thresholds import parse_thresholds


def owned_node(db: Session, node_id: str, user: AuthUser) -> dict:
    node = find_node_by_id(db, node_id)
    if not node or node["user_id"] != user.user_id:
        raise HTTPException(status_code=404, detail="Node not found")
    return node


def owned_pot(db: Session, pot_id: str, user: AuthUser) -> dict:
    # Pots of other users' nodes are reported as missing, not forbidden.
    pot = get_pot(db, pot_id)
    if not pot:
        raise HTTPException(status_code=404, detail="Pot not found")
    node = find_node_by_id(db, pot["node_id"])
    if not node or node["user_id"] != user.user_id:
        raise HTTPException(status_code=404, detail="Pot not found")
    return pot


def pot_view(pot: dict) -> dict:
    thresholds = parse_thresholds(pot["thresholds"])
    return pot | {
        "thresholds": {k: t.as_dict() for k, t in thresholds.items()} if pot["thresholds"] is not None else None
    }
