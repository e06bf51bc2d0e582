from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from potmonitor.api.deps import owned_node, pot_view
from potmonitor.core.auth import AuthNode, AuthUser, get_current_node, get_current_user
from potmonitor.db.session import get_db
from potmonitor.schemas.node import HeartbeatOut, NodeErrorIn, NodeErrorOut, NodeOut
from potmonitor.schemas.pot import PotOut
from potmonitor.services.nodes import (
    find_node_by_id,
    list_node_errors_by_user,
    list_nodes_by_user,
    report_node_error,
)
from potmonitor.services.pots import list_pots_by_node

router = APIRouter()


@router.get("", response_model=list[NodeOut])
def get_nodes(
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[dict]:
    return list_nodes_by_user(db, current_user.user_id)


# Declared before /{node_id} so "error" is not captured as a node id.
@router.get("/error", response_model=list[NodeErrorOut])
def get_node_errors(
    node_id: str | None = Query(default=None, alias="nodeId"),
    time_start: datetime | None = Query(default=None, alias="timeStart"),
    time_end: datetime | None = Query(default=None, alias="timeEnd"),
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[dict]:
    return list_node_errors_by_user(
        db,
        current_user.user_id,
        node_id=node_id,
        time_start=time_start,
        time_end=time_end,
    )


@router.get("/{node_id}", response_model=NodeOut)
def get_node(
    node_id: str,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> dict:
    return owned_node(db, node_id, current_user)


@router.get("/{node_id}/pot", response_model=list[PotOut])
def get_node_pots(
    node_id: str,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[dict]:
    owned_node(db, node_id, current_user)
    return [pot_view(p) for p in list_pots_by_node(db, node_id)]


@router.post("/{node_id}/heartbeat", response_model=HeartbeatOut)
def heartbeat(
    node_id: str,
    db: Session = Depends(get_db),
    current_node: AuthNode = Depends(get_current_node),
) -> dict:
    if current_node.node_id != node_id:
        raise HTTPException(status_code=404, detail="Node not found")
    node = find_node_by_id(db, node_id)
    if not node:
        raise HTTPException(status_code=404, detail="Node not found")
    return {"node": node, "pots": [pot_view(p) for p in list_pots_by_node(db, node_id)]}


@router.post("/{node_id}/error", response_model=NodeErrorOut, status_code=201)
def create_node_error(
    node_id: str,
    payload: NodeErrorIn,
    db: Session = Depends(get_db),
    current_node: AuthNode = Depends(get_current_node),
) -> dict:
    if current_node.node_id != node_id:
        raise HTTPException(status_code=404, detail="Node not found")
    return report_node_error(
        db,
        node_id=node_id,
        code=payload.code,
        message=payload.message,
        severity=payload.severity,
        timestamp=payload.timestamp,
    )
