"""Serves the single static page."""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from src.social_login.auth.dependencies import get_app_settings
from src.social_login.config import Settings

router = APIRouter(tags=["home"])


@router.get("/", include_in_schema=False)
@router.get("/index.html", include_in_schema=False)
async def index(settings: Settings = Depends(get_app_settings)) -> FileResponse:
    return FileResponse(settings.static_dir / "index.html", media_type="text/html")
