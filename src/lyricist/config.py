import os
from functools import lru_cache

import platformdirs
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_NAME = "lyricist"
APP_AUTHOR = "lyricist"


class Settings(BaseSettings):
    """Runtime settings, read from ``LYRICIST_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(env_prefix="LYRICIST_", env_file=".env", extra="ignore")

    # Paths
    data_dir: str = Field(default_factory=lambda: platformdirs.user_data_dir(APP_NAME, APP_AUTHOR))
    songs_file: str | None = None

    # Remote API
    api_url: str | None = None
    request_timeout: float = 15.0

    # Origins the API handlers echo back in CORS responses; the first entry
    # is the fallback for unknown origins.
    allowed_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:4173",
    ]

    log_level: str = "WARNING"

    def model_post_init(self, __context) -> None:
        if not self.songs_file:
            self.songs_file = os.path.join(self.data_dir, "songs.json")


@lru_cache
def get_settings() -> Settings:
    return Settings()
