from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    google_cloud_project: str = ""
    firestore_emulator_host: Optional[str] = None
    storage_backend: str = "firestore"  # firestore | memory
    # Public root of the web client; play links and game links hang off this
    base_web_path: str = "http://localhost:8080"
    data_dir: str = "data"
    objects_url_path: str = "/objects"
    # CORS origins; set ALLOWED_ORIGINS env var for production (comma-separated)
    allowed_origins: List[str] = [
        "http://localhost:8080",
        "http://localhost:3000",
    ]
    # Extra production origin; appended to allowed_origins
    extra_origin: str = ""

    # ── Game rules ────────────────────────────────────────────────────────────
    min_players: int = 4
    max_warnings: int = 2  # reminders sent before the turn-holder is dropped
    avatar_refresh_days: int = 30
    title_image_width: int = 400
    title_image_height: int = 200
    reminder_interval_hours: float = 24  # 0 disables the in-process sweep loop
    store_retry_attempts: int = 3
    redirect_depth: int = 8
    bot_name: str = "@epyc"

    debug: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
    )


settings = Settings()
