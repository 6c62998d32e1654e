"""Share routes: publish a share and read it back until it expires."""

from fastapi import APIRouter, Depends, HTTPException

from backend.database import get_store
from backend.models.share import ErrorResponse, Share, ShareCreate, ShareCreated
from backend.services.share_store import ShareNotFoundError, ShareStore, ShareValidationError

router = APIRouter(prefix="/api/share", tags=["share"])

NOT_FOUND_MESSAGE = "Share not found or expired."


@router.post("", response_model=ShareCreated, responses={400: {"model": ErrorResponse}})
async def create_share(body: ShareCreate, store: ShareStore = Depends(get_store)):
    """Create a share from a name, a text and a list of photo URLs."""
    try:
        share_id, expires_at = store.create(body.userName, body.loveText, body.photos, body.ttlMs)
    except ShareValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ShareCreated(id=share_id, expiresAt=expires_at)


@router.get("/{share_id}", response_model=Share, responses={404: {"model": ErrorResponse}})
async def get_share(share_id: str, store: ShareStore = Depends(get_store)):
    """Get a live share. Expired and unknown ids both answer 404."""
    try:
        return store.get(share_id)
    except ShareNotFoundError:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)
