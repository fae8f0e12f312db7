from typing import List
import json

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "OnlineMovies"
    app_env: str = "dev"
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/app.db"

    # read raw string from env (works with comma-separated values)
    cors_origins: str = "http://localhost:5173"

    # HS512 wants a long key, override in .env for anything but local dev
    jwt_secret: str = (
        "online-movies-development-secret-key-change-me-"
        "0123456789abcdef0123456789abcdef"
    )
    jwt_algorithm: str = "HS512"
    jwt_ttl_hours: int = 24

    auth_cookie_name: str = "jwt-token-online-movies"
    auth_cookie_secure: bool = True

    # avatars land in <web_root>/avatars and are served from /avatars
    web_root: str = "./wwwroot"
    max_avatar_bytes: int = 4 * 1024 * 1024

    @property
    def cors_origins_list(self) -> List[str]:
        s = (self.cors_origins or "").strip()
        if not s:
            return []
        if s.startswith("["):
            # also accept JSON list
            return [str(x) for x in json.loads(s)]
        return [part.strip() for part in s.split(",") if part.strip()]


settings = Settings()
