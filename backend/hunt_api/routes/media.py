from __future__ import annotations
from fastapi import APIRouter, Depends, UploadFile, File
from starlette.concurrency import run_in_threadpool
import structlog
from hunt_api.auth_deps import get_current_user
from hunt_api.config import settings
from hunt_api.schemas.auth import CurrentUser
from hunt_api.schemas.submission import ImageStored
from hunt_api.services.media import check_image, ext_for_mime
from hunt_api.services.storage import store_image

router = APIRouter(prefix="/media", tags=["media"])
log = structlog.get_logger(__name__)

@router.post("/images", response_model=ImageStored, status_code=201)
async def upload_image(
    image: UploadFile = File(..., description="JPEG or PNG photo"),
    user: CurrentUser = Depends(get_current_user),
):
    """Store the photo and hand back a durable URL to use as a submission's imageUrl."""
    data = await image.read(settings.max_image_bytes + 1)
    mime = check_image(data, settings.max_image_bytes)
    url = await run_in_threadpool(store_image, data, mime, ext_for_mime(mime))
    log.info("media.stored", url=url, size=len(data), by=str(user.id))
    return ImageStored(url=url, content_type=mime, size=len(data))
