from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from potmonitor.api.deps import owned_pot, pot_view
from potmonitor.core.auth import AuthNode, AuthUser, get_current_node, get_current_user
from potmonitor.db.session import get_db
from potmonitor.schemas.measurement import MeasurementIn, MeasurementOut
from potmonitor.schemas.pot import PotOut, PotUpdate
from potmonitor.services.measurements import list_measurements, record_measurement
from potmonitor.services.pots import get_pot, update_pot
from potmonitor.services.thresholds import Threshold, serialize_thresholds

router = APIRouter()


@router.get("/{pot_id}", response_model=PotOut)
def get_pot_detail(
    pot_id: str,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> dict:
    return pot_view(owned_pot(db, pot_id, current_user))


@router.patch("/{pot_id}", response_model=PotOut)
def patch_pot(
    pot_id: str,
    payload: PotUpdate,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> dict:
    owned_pot(db, pot_id, current_user)

    fields = payload.model_dump(exclude_unset=True, include={"name", "note", "reporting_time"})
    for column in ("name", "note"):
        if column in fields and fields[column] is None:
            del fields[column]
    if "thresholds" in payload.model_fields_set:
        fields["thresholds"] = serialize_thresholds(
            {k: Threshold(min=v.min, max=v.max) for k, v in payload.thresholds.items()}
            if payload.thresholds is not None
            else None
        )
    if not fields:
        raise HTTPException(status_code=400, detail="No updatable fields")

    updated = update_pot(db, pot_id, fields)
    if not updated:
        raise HTTPException(status_code=404, detail="Pot not found")
    return pot_view(updated)


@router.put("/{pot_id}/measurement", response_model=MeasurementOut, status_code=201)
def put_measurement(
    pot_id: str,
    payload: MeasurementIn,
    db: Session = Depends(get_db),
    current_node: AuthNode = Depends(get_current_node),
) -> dict:
    pot = get_pot(db, pot_id)
    if not pot:
        raise HTTPException(status_code=404, detail="Pot not found")
    if pot["node_id"] != current_node.node_id:
        raise HTTPException(status_code=404, detail="Pot not owned by node")
    return record_measurement(
        db,
        pot,
        timestamp=payload.timestamp,
        value=payload.value,
        type=payload.type,
    )


@router.get("/{pot_id}/measurement", response_model=list[MeasurementOut])
def get_measurements(
    pot_id: str,
    time_start: datetime | None = Query(default=None, alias="timeStart"),
    time_end: datetime | None = Query(default=None, alias="timeEnd"),
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
) -> list[dict]:
    owned_pot(db, pot_id, current_user)
    return list_measurements(db, pot_id, time_start=time_start, time_end=time_end)
