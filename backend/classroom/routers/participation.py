from __future__ import annotations
from typing import Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query

from ..reports import diary_entries, participation_report
from ..services import ClassroomServices, get_services
from .auth import get_current_admin


router = APIRouter(prefix="/participation", tags=["participation"], dependencies=[Depends(get_current_admin)])


@router.get("")
def list_records(services: ClassroomServices = Depends(get_services)):
	return [r.to_json_dict() for r in services.ledger.all()]


@router.get("/diary")
def diary(services: ClassroomServices = Depends(get_services)):
	return diary_entries(services.ledger.all())


@router.get("/report")
def report(
	timeframe: Literal["day", "week", "month", "all"] = Query("day"),
	grade: Optional[str] = Query(None),
	period: Optional[int] = Query(None, ge=1, le=7),
	services: ClassroomServices = Depends(get_services),
):
	return participation_report(services.ledger.all(), timeframe=timeframe, grade=grade, period=period)


@router.delete("/session")
def delete_session(
	background: BackgroundTasks,
	date: str = Query(...),
	grade: str = Query(...),
	period: int = Query(..., ge=1, le=7),
	services: ClassroomServices = Depends(get_services),
):
	removed = services.ledger.delete_session(date, grade, period, background)
	return {"removed": removed}


@router.delete("/{record_id}")
def delete_record(record_id: str, background: BackgroundTasks, services: ClassroomServices = Depends(get_services)):
	if not services.ledger.delete_record(record_id, background):
		raise HTTPException(status_code=404, detail="record not found")
	return {"ok": True}
