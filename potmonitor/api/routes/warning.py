from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from potmonitor.api.deps import owned_node, owned_pot
from potmonitor.core.auth import AuthUser, get_current_user
from potmonitor.db.session import get_db
from potmonitor.schemas.warning import DismissAllOut, WarningOut
from potmonitor.services.pot_warnings import (
    dismiss_all,
    dismiss_warning,
    get_warning,
    list_active_by_node,
    list_active_by_pot,
)

router = APIRouter()


@router.get("/pot/{pot_id}/warning", response_model=list[WarningOut])
def get_pot_warnings(
    pot_id: str,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[dict]:
    owned_pot(db, pot_id, current_user)
    return list_active_by_pot(db, pot_id)


@router.get("/node/{node_id}/warning", response_model=list[WarningOut])
def get_node_warnings(
    node_id: str,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[dict]:
    owned_node(db, node_id, current_user)
    return list_active_by_node(db, node_id)


@router.post("/pot/{pot_id}/warning/dismiss-all", response_model=DismissAllOut)
def post_dismiss_all(
    pot_id: str,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> dict:
    owned_pot(db, pot_id, current_user)
    return {"pot_id": pot_id, "dismissed": dismiss_all(db, pot_id)}


@router.post("/pot/{pot_id}/warning/{warning_id}/dismiss", response_model=WarningOut)
def post_dismiss_warning(
    pot_id: str,
    warning_id: str,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> dict:
    owned_pot(db, pot_id, current_user)
    if not dismiss_warning(db, warning_id, pot_id=pot_id):
        raise HTTPException(status_code=404, detail="Active warning not found")
    return get_warning(db, warning_id)
