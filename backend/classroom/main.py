from __future__ import annotations
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .db import Base, SessionLocal, engine
from .errors import ClassroomError
from .logging_config import setup_logging
from .services import ClassroomServices
from .settings import settings
from .routers import activities, auth, cloud, content, curriculum, participation, session

logger = logging.getLogger(__name__)


def create_app(services: Optional[ClassroomServices] = None) -> FastAPI:
	app = FastAPI(title="English Genius Classroom API")
	app.state.services = services or ClassroomServices(SessionLocal)

	app.include_router(auth.router)
	app.include_router(session.router)
	app.include_router(participation.router)
	app.include_router(curriculum.router)
	app.include_router(activities.router)
	app.include_router(cloud.router)
	app.include_router(content.router)

	@app.exception_handler(ClassroomError)
	async def classroom_error_handler(request: Request, exc: ClassroomError):
		if exc.status_code >= 500:
			logger.warning("Request degraded", extra={"context": {"path": request.url.path, "error": exc.message}})
		return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "error": type(exc).__name__})

	@app.get("/info")
	def info():
		cloud_client = app.state.services.cloud
		return {
			"status": "ok",
			"gemini_configured": bool(settings.gemini_api_key),
			"cloud_connected": cloud_client.is_connected(),
			"cloud_banner": cloud_client.banner,
		}

	@app.on_event("startup")
	async def startup_event():
		setup_logging(settings.log_level)
		Base.metadata.create_all(bind=engine)
		services: ClassroomServices = app.state.services
		config = services.saved_cloud_config()
		if config is None:
			logger.info("No cloud config saved, running local-only")
			return
		services.cloud.connect(config)
		ok, error = await services.cloud.check_access()
		if not ok:
			logger.warning("Cloud store not reachable, running local-only", extra={"context": {"error": error}})

	@app.on_event("shutdown")
	async def shutdown_event():
		await app.state.services.cloud.aclose()

	return app


app = create_app()
