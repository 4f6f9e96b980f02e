from __future__ import annotations
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel

from ..leaderboard import session_leaderboard
from ..schemas import LeaderboardEntry, SessionInfo
from ..services import ClassroomServices, get_services
from .auth import get_current_admin


router = APIRouter(tags=["session"], dependencies=[Depends(get_current_admin)])


class ResolveRequest(BaseModel):
	isCorrect: bool


@router.post("/session")
def start_session(session: SessionInfo, services: ClassroomServices = Depends(get_services)):
	picker = services.start_session(session)
	return picker.snapshot()


@router.get("/session")
def current_session(services: ClassroomServices = Depends(get_services)):
	return services.session.to_json_dict() if services.session else None


@router.get("/picker")
def picker_state(services: ClassroomServices = Depends(get_services)):
	return services.require_picker().snapshot()


@router.post("/picker/draw")
def draw(services: ClassroomServices = Depends(get_services)):
	picker = services.require_picker()
	picker.draw()
	return picker.snapshot()


@router.post("/picker/start")
def start_timer(services: ClassroomServices = Depends(get_services)):
	picker = services.require_picker()
	picker.start_timer()
	return picker.snapshot()


@router.post("/picker/absent")
def mark_absent(services: ClassroomServices = Depends(get_services)):
	picker = services.require_picker()
	picker.mark_absent()
	return picker.snapshot()


@router.post("/picker/resolve")
def resolve(req: ResolveRequest, background: BackgroundTasks, services: ClassroomServices = Depends(get_services)):
	picker = services.require_picker()
	picker.resolve(req.isCorrect, background)
	return picker.snapshot()


@router.post("/picker/reset-pool")
def reset_pool(services: ClassroomServices = Depends(get_services)):
	picker = services.require_picker()
	picker.reset_pool()
	return picker.snapshot()


@router.post("/picker/reset-session")
def reset_session(background: BackgroundTasks, services: ClassroomServices = Depends(get_services)):
	picker = services.require_picker()
	session = picker.session
	removed = services.ledger.delete_session(session.date, session.grade, session.period, background)
	picker.reset_pool()
	return {"removed": removed, **picker.snapshot()}


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
def leaderboard(services: ClassroomServices = Depends(get_services)):
	picker = services.require_picker()
	return session_leaderboard(services.ledger.all(), picker.session)
