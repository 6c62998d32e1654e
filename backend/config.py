"""Application configuration via environment variables."""

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

# 10 days
DEFAULT_SHARE_TTL_MS = 10 * 24 * 60 * 60 * 1000


class Settings(BaseSettings):
    """LoveShare application settings loaded from environment variables."""

    # Data paths
    data_dir: Path = Path("data")
    db_path: Path = Path("data/server-db.json")

    # Share lifetime when the client does not ask for one
    share_ttl_ms: int = DEFAULT_SHARE_TTL_MS

    # Image host (the bare IMGBB_API_KEY name is accepted too)
    imgbb_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("LOVESHARE_IMGBB_API_KEY", "IMGBB_API_KEY"),
    )
    imgbb_upload_url: str = "https://api.imgbb.com/1/upload"
    imgbb_timeout_seconds: float = 60.0

    # CORS (comma-separated origins; empty allows any origin)
    cors_origins: str = ""

    # Request bodies carry base64 images
    max_body_size_mb: int = 15

    # Bundled front-end
    frontend_dir: Path = Path("media")
    index_file: str = "index.html"

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=3000, validation_alias=AliasChoices("LOVESHARE_PORT", "PORT"))

    model_config = {
        "env_prefix": "LOVESHARE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @property
    def max_body_size_bytes(self) -> int:
        return self.max_body_size_mb * 1024 * 1024

    @property
    def cors_origin_list(self) -> list[str]:
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return origins or ["*"]


# Singleton instance
settings = Settings()
