"""Relay a base64 image to imgbb and hand back its public URL.

The share store only ever sees URLs; this is how the bundled front-end gets
one for a photo picked on the device.
"""

import logging
from pathlib import PurePath

import httpx

from backend.config import settings

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_NAME = "uploaded-photo"


class UploadRelayError(Exception):
    """Upload could not be relayed. Carries the HTTP status to answer with."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def upload_name(file_name: str) -> str:
    """File name without directory or extension, as imgbb's ``name`` field."""
    return PurePath(file_name.replace("\\", "/")).stem or DEFAULT_UPLOAD_NAME


def extract_url(payload: dict) -> str | None:
    """Pick the public URL out of an imgbb upload response."""
    data = payload.get("data") or {}
    if not isinstance(data, dict):
        return None
    image = data.get("image") or {}
    return data.get("url") or data.get("display_url") or (
        image.get("url") if isinstance(image, dict) else None
    )


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return f"Image host returned HTTP {resp.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"Image host returned HTTP {resp.status_code}"


async def relay_upload(
    image_base64: str,
    file_name: str | None = None,
    *,
    api_key: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Upload an image to imgbb and return its public URL.

    Args:
        image_base64: Image bytes, base64 encoded
        file_name: Original file name, used to name the upload
        api_key: imgbb key, defaults to the configured one
        client: Client to send through; one is created when omitted

    Raises:
        UploadRelayError: On missing config/input or any image host failure
    """
    api_key = settings.imgbb_api_key if api_key is None else api_key
    if not api_key:
        raise UploadRelayError(500, "IMGBB_API_KEY is not configured on the server.")
    if not image_base64:
        raise UploadRelayError(400, "Missing imageBase64.")

    form = {"image": image_base64}
    if file_name:
        form["name"] = upload_name(file_name)

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=settings.imgbb_timeout_seconds)

    try:
        # Plain form fields, sent as multipart like the browser form
        files = {field: (None, value) for field, value in form.items()}
        resp = await client.post(settings.imgbb_upload_url, params={"key": api_key}, files=files)
        if resp.status_code != 200:
            message = _error_message(resp)
            logger.warning("imgbb upload failed (%d): %s", resp.status_code, message)
            raise UploadRelayError(502, message)
        payload = resp.json()
    except httpx.HTTPError as e:
        logger.warning("imgbb upload error: %s", e)
        raise UploadRelayError(502, str(e) or "Upload failed.") from e
    except ValueError as e:
        logger.warning("imgbb returned a non-JSON body: %s", e)
        raise UploadRelayError(502, "Image host did not return a URL.") from e
    finally:
        if owns_client:
            await client.aclose()

    url = extract_url(payload) if isinstance(payload, dict) else None
    if not url:
        raise UploadRelayError(502, "Image host did not return a URL.")
    return url
