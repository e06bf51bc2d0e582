from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from potmonitor.core.config import settings
from potmonitor.core.errors import StoreReadError, StoreWriteError
from potmonitor.models.entities import Node, NodeError, NodeToken


def _node_dict(n: Node) -> dict:
    return {
        "id": n.id,
        "user_id": n.user_id,
        "name": n.name,
        "note": n.note,
        "status": n.status,
        "data_archiving": n.data_archiving,
        "created_at": n.created_at,
    }


def _node_error_dict(e: NodeError) -> dict:
    return {
        "id": e.id,
        "node_id": e.node_id,
        "code": e.code,
        "message": e.message,
        "severity": e.severity,
        "timestamp": e.timestamp,
    }


def find_node_by_id(db: Session, node_id: str) -> dict | None:
    try:
        node = db.get(Node, node_id)
    except SQLAlchemyError as exc:
        raise StoreReadError(f"Could not read node {node_id}") from exc
    return _node_dict(node) if node else None


def find_node_by_token(db: Session, token: str) -> dict | None:
    stmt = (
        select(Node)
        .join(NodeToken, NodeToken.node_id == Node.id)
        .where(NodeToken.token == token)
        .limit(1)
    )
    try:
        node = db.scalars(stmt).first()
    except SQLAlchemyError as exc:
        raise StoreReadError("Could not look up node token") from exc
    return _node_dict(node) if node else None


def list_nodes_by_user(db: Session, user_id: str) -> list[dict]:
    stmt = select(Node).where(Node.user_id == user_id).order_by(Node.created_at)
    try:
        nodes = db.scalars(stmt).all()
    except SQLAlchemyError as exc:
        raise StoreReadError(f"Could not list nodes for user {user_id}") from exc
    return [_node_dict(n) for n in nodes]


def report_node_error(
    db: Session,
    *,
    node_id: str,
    code: str,
    message: str,
    severity: str = "medium",
    timestamp: datetime | None = None,
) -> dict:
    error = NodeError(
        id=str(uuid.uuid4()),
        node_id=node_id,
        code=code,
        message=message,
        severity=severity or "medium",
        timestamp=timestamp or datetime.now(timezone.utc),
    )
    try:
        db.add(error)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreWriteError(f"Could not store error report for node {node_id}") from exc
    return _node_error_dict(error)


def list_node_errors_by_user(
    db: Session,
    user_id: str,
    *,
    node_id: str | None = None,
    time_start: datetime | None = None,
    time_end: datetime | None = None,
) -> list[dict]:
    stmt = select(NodeError).join(Node, Node.id == NodeError.node_id).where(Node.user_id == user_id)
    if node_id is not None:
        stmt = stmt.where(NodeError.node_id == node_id)
    if time_start is not None:
        stmt = stmt.where(NodeError.timestamp >= time_start)
    if time_end is not None:
        stmt = stmt.where(NodeError.timestamp <= time_end)
    stmt = stmt.order_by(NodeError.timestamp.desc()).limit(settings.measurement_list_limit)
    try:
        errors = db.scalars(stmt).all()
    except SQLAlchemyError as exc:
        raise StoreReadError(f"Could not list node errors for user {user_id}") from exc
    return [_node_error_dict(e) for e in errors]
