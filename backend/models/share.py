"""Pydantic models for shares."""

from typing import Any

from pydantic import BaseModel, Field


class Share(BaseModel):
    """A persisted share, serialized with the camelCase keys clients use."""

    id: str
    userName: str = ""
    loveText: str = ""
    photos: list[str]
    createdAt: int
    expiresAt: int | float


class ShareCreate(BaseModel):
    userName: str = ""
    loveText: str = ""
    # Checked by the store so a bad list is a 400 with a readable message
    photos: Any = None
    ttlMs: Any = None


class ShareCreated(BaseModel):
    id: str
    expiresAt: int | float


class UploadRequest(BaseModel):
    imageBase64: str = ""
    fileName: str | None = None


class UploadResponse(BaseModel):
    url: str


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Human-readable error message")
