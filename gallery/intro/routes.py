"""Intro video routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from gallery.config import IntroConfig, settings
from gallery.db import get_db
from gallery.logging_config import logger
from gallery.video import catalog
from gallery.video.schemas import VideoRecord

router = APIRouter()

INTRO_CACHE_CONTROL = "public, max-age=31536000, immutable"


class IntroResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    video: Optional[VideoRecord] = None
    splash_url: str = Field(..., alias="splashUrl")
    enter_url: str = Field(..., alias="enterUrl")


def get_intro_config(request: Request) -> IntroConfig:
    """Intro configuration placed on app.state at startup."""
    config = getattr(request.app.state, "intro_config", None)
    if config is None:
        config = IntroConfig.from_settings(settings)
        request.app.state.intro_config = config
    return config


@router.get("", response_model=IntroResponse)
async def get_intro_video(
    response: Response,
    db: AsyncSession = Depends(get_db),
    intro: IntroConfig = Depends(get_intro_config),
) -> IntroResponse:
    """Intro clip URLs and the catalog row of the intro video, if any."""
    video = await catalog.get_intro_video(db, intro.marker)
    logger.debug("Fetched intro video", found=video is not None)

    response.headers["Cache-Control"] = INTRO_CACHE_CONTROL
    return IntroResponse(video=video, splash_url=intro.splash_url, enter_url=intro.enter_url)
