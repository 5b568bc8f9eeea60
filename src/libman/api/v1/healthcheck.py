from fastapi import APIRouter, Depends

from libman.api.dependencies import get_app_settings
from libman.config.settings import Settings
from libman.schemas.book import HealthOut
from libman.utils.project import get_project_version

router = APIRouter(tags=["health"])


@router.get("/healthcheck", response_model=HealthOut)
async def healthcheck(settings: Settings = Depends(get_app_settings)) -> HealthOut:
    return HealthOut(status="available", environment=settings.ENV, version=get_project_version())
