from __future__ import annotations
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends

from ..picker import new_record_id
from ..schemas import ActivityIn, ActivityRecord
from ..services import ClassroomServices, get_services


router = APIRouter(prefix="/activities", tags=["activities"])


@router.post("", status_code=201)
def log_activity(activity: ActivityIn, background: BackgroundTasks, services: ClassroomServices = Depends(get_services)):
	section = services.session.grade if services.session else "Unknown"
	record = ActivityRecord.model_validate({
		**activity.to_json_dict(),
		"id": new_record_id(),
		"studentSection": section,
		"date": date.today().isoformat(),
	})
	services.activities.append(record, background)
	return record.to_json_dict()


@router.get("")
def list_activities(student: Optional[str] = None, services: ClassroomServices = Depends(get_services)):
	records = services.activities.for_student(student) if student else services.activities.all()
	return [r.to_json_dict() for r in records]
