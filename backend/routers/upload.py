"""Upload route: turn a base64 image into a public URL for a share."""

from fastapi import APIRouter, HTTPException

from backend.models.share import ErrorResponse, UploadRequest, UploadResponse
from backend.services.upload_relay import UploadRelayError, relay_upload

router = APIRouter(prefix="/api/upload", tags=["upload"])


@router.post(
    "",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def upload_image(body: UploadRequest):
    """Relay one image to the image host.

    Accepts ``{"imageBase64": ..., "fileName": ...}`` and returns ``{"url": ...}``.
    """
    try:
        url = await relay_upload(body.imageBase64, body.fileName)
    except UploadRelayError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return UploadResponse(url=url)
