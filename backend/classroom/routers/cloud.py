from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..errors import CloudPermissionError, CloudUnavailableError
from ..services import ClassroomServices, get_services
from .auth import get_current_admin


router = APIRouter(prefix="/cloud", tags=["cloud"], dependencies=[Depends(get_current_admin)])


class ConfigRequest(BaseModel):
	# The config object exactly as pasted from the Firebase console
	config: str


@router.get("/status")
def status(services: ClassroomServices = Depends(get_services)):
	cloud = services.cloud
	return {
		"connected": cloud.is_connected(),
		"writable": cloud.is_writable(),
		"projectId": cloud.config.project_id if cloud.config else None,
		"banner": cloud.banner,
	}


@router.post("/config")
async def save_config(req: ConfigRequest, services: ClassroomServices = Depends(get_services)):
	config = services.save_cloud_config(req.config)
	ok, error = await services.cloud.check_access()
	return {"ok": ok, "error": error, "projectId": config.project_id, "banner": services.cloud.banner}


@router.post("/test")
async def test_connection(services: ClassroomServices = Depends(get_services)):
	ok, error = await services.cloud.check_access()
	if not ok and services.cloud.banner:
		raise CloudPermissionError(services.cloud.banner)
	if not ok:
		raise CloudUnavailableError(f"Connection Failed: {error}")
	return {"ok": True}


@router.post("/upload")
async def upload_local_data(services: ClassroomServices = Depends(get_services)):
	if not services.cloud.is_connected():
		raise CloudUnavailableError("Cloud store not configured. Save a configuration first.")
	success = await services.cloud.upload_local_data(
		services.curriculum.load().to_json_dict(),
		[r.to_json_dict() for r in services.ledger.all()],
		[r.to_json_dict() for r in services.activities.all()],
	)
	if not success:
		raise CloudUnavailableError("Upload failed. Check your connection and that the database isn't locked.")
	return {"ok": True}


@router.post("/pull")
async def pull(services: ClassroomServices = Depends(get_services)):
	if not services.cloud.is_connected():
		raise CloudUnavailableError("Cloud store not configured. Save a configuration first.")
	result = await services.pull_from_cloud()
	if not result["ok"] and services.cloud.banner:
		raise CloudPermissionError(services.cloud.banner)
	return result
