"""LoveShare FastAPI application."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, Request

# Configure logging so our INFO messages appear in container logs
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
# Keep noisy libraries at WARNING
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.config import settings
from backend.database import close_store, get_store, init_store
from backend.routers import share, upload
from backend.services.share_store import ShareStore

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    # Startup
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    init_store()
    logger.info("Share store at %s", settings.db_path)

    if not settings.imgbb_api_key:
        logger.warning(
            "IMGBB_API_KEY is not set. /api/upload will refuse uploads; "
            "shares can still be created from existing image URLs."
        )

    yield
    # Shutdown
    close_store()


app = FastAPI(
    title="LoveShare",
    description="Short-lived photo shares",
    version=VERSION,
    lifespan=lifespan,
)


class BodySizeLimitMiddleware:
    """Answer 413 once a request body grows past max_body_size_mb.

    Counts the bytes actually received, so chunked bodies without a
    Content-Length are limited too. The body is buffered and replayed to the
    app in one message.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = settings.max_body_size_bytes
        length = Headers(scope=scope).get("content-length")
        if length and length.isdigit() and int(length) > limit:
            await self._reject(scope, receive, send)
            return

        body = bytearray()
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                return
            body.extend(message.get("body", b""))
            more_body = message.get("more_body", False)
            if len(body) > limit:
                await self._reject(scope, receive, send)
                return

        replayed = False

        async def replay_receive():
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": bytes(body), "more_body": False}
            return await receive()

        await self.app(scope, replay_receive, send)

    async def _reject(self, scope, receive, send):
        response = JSONResponse(
            status_code=413,
            content={"error": f"Request body exceeds {settings.max_body_size_mb}MB."},
        )
        await response(scope, receive, send)


# Registered before CORS so CORS wraps it and a 413 still carries its headers
app.add_middleware(BodySizeLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error bodies ─────────────────────────────────────────────────────────────

async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are a 400 with a readable message, not FastAPI's 422."""
    errors = exc.errors()
    message = "Invalid request body."
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    return JSONResponse(status_code=400, content={"error": message})


app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)


# API routers
app.include_router(share.router)
app.include_router(upload.router)


# Health check
@app.get("/api/health")
async def health(store: ShareStore = Depends(get_store)):
    return {
        "ok": True,
        "version": VERSION,
        "imgbbConfigured": bool(settings.imgbb_api_key),
        "activeShares": len(store.list_active()),
    }


def mount_frontend(app: FastAPI, directory: Path, index_file: str) -> None:
    """Serve ``index_file`` at ``/`` and every other file in ``directory``.

    Must run after the API routes so the catch-all mount does not shadow them.
    """
    index_path = directory / index_file

    @app.get("/", include_in_schema=False)
    async def serve_index():
        if not index_path.is_file():
            raise StarletteHTTPException(status_code=404, detail="Front-end not found.")
        return FileResponse(index_path)

    app.mount("/", StaticFiles(directory=directory), name="frontend")


# Serve the bundled front-end
if settings.frontend_dir.is_dir():
    mount_frontend(app, settings.frontend_dir, settings.index_file)


def run() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
