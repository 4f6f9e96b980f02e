from __future__ import annotations
import uuid
from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from pydantic import BaseModel, Field

from ..curriculum import STUDENTS_BY_GRADE, roster_for
from ..schemas import ContentAssignment, Curriculum, MasteryLevel, StudentProfile
from ..services import ClassroomServices, get_services
from .auth import get_current_admin


router = APIRouter(prefix="/curriculum", tags=["curriculum"])


class ProfileUpdate(BaseModel):
	needsSupport: Optional[bool] = None
	isSpecialNeeds: Optional[bool] = None
	primaryLanguage: Optional[str] = None
	baselineTaken: Optional[bool] = None
	masteryLevel: Optional[MasteryLevel] = None


class BaselineResult(BaseModel):
	studentName: str = Field(min_length=1)
	level: MasteryLevel
	quizScore: Optional[float] = None
	writingText: Optional[str] = None


class AssignmentRequest(BaseModel):
	moduleId: str
	activityType: Literal["module", "custom-reading", "custom-vocabulary", "leveled-text"] = "module"
	studentName: str
	contentPayload: Optional[str] = None
	accessCode: Optional[str] = None
	activityId: Optional[str] = None


@router.get("")
def get_curriculum(services: ClassroomServices = Depends(get_services)):
	return services.curriculum.load().to_json_dict()


@router.put("", dependencies=[Depends(get_current_admin)])
def put_curriculum(curriculum: Curriculum, background: BackgroundTasks, services: ClassroomServices = Depends(get_services)):
	saved = services.curriculum.save(curriculum, background)
	services.refresh_picker()
	return saved.to_json_dict()


@router.get("/grades")
def grades():
	return list(STUDENTS_BY_GRADE.keys())


@router.get("/roster/{grade}", response_model=List[str])
def roster(grade: str):
	if grade not in STUDENTS_BY_GRADE:
		raise HTTPException(status_code=404, detail="unknown grade")
	return roster_for(grade)


@router.put("/profiles/{name}", response_model=StudentProfile, dependencies=[Depends(get_current_admin)])
def update_profile(name: str, update: ProfileUpdate, background: BackgroundTasks, services: ClassroomServices = Depends(get_services)):
	profile = services.curriculum.upsert_profile(name, update.model_dump(exclude_none=True), background)
	services.refresh_picker()
	return profile


@router.post("/baseline", response_model=StudentProfile)
def complete_baseline(result: BaselineResult, background: BackgroundTasks, services: ClassroomServices = Depends(get_services)):
	profile = services.curriculum.complete_baseline(result.studentName, result.level, background)
	services.refresh_picker()
	return profile


@router.get("/assignments", response_model=List[ContentAssignment])
def list_assignments(student: Optional[str] = None, services: ClassroomServices = Depends(get_services)):
	assignments = services.curriculum.load().assignments
	if student:
		assignments = [a for a in assignments if a.student_name == student]
	return assignments


@router.post("/assignments", response_model=ContentAssignment, status_code=201, dependencies=[Depends(get_current_admin)])
def add_assignment(req: AssignmentRequest, background: BackgroundTasks, services: ClassroomServices = Depends(get_services)):
	assignment = ContentAssignment.model_validate({
		**req.model_dump(exclude_none=True),
		"id": uuid.uuid4().hex,
		"dateAssigned": date.today().isoformat(),
	})
	return services.curriculum.add_assignment(assignment, background)


@router.delete("/assignments/{assignment_id}", dependencies=[Depends(get_current_admin)])
def delete_assignment(assignment_id: str, background: BackgroundTasks, services: ClassroomServices = Depends(get_services)):
	if not services.curriculum.delete_assignment(assignment_id, background):
		raise HTTPException(status_code=404, detail="assignment not found")
	return {"ok": True}
