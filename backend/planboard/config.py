from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class AppConfig:
    database_url: str
    auto_create_schema: bool
    cors_origins: list[str]
    app_base_url: str
    jwt_secret: str
    jwt_refresh_secret: str
    access_token_ttl_minutes: int
    refresh_token_ttl_days: int
    log_level: str


def load_app_config() -> AppConfig:
    database_url = os.getenv("DATABASE_URL", "sqlite:///./planboard.db")
    auto_create_schema = os.getenv("AUTO_CREATE_SCHEMA")
    cors_origins_raw = os.getenv(
        "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    )
    jwt_secret = os.getenv("JWT_SECRET", "dev-planboard-jwt-secret-change-me")

    return AppConfig(
        database_url=database_url,
        auto_create_schema=auto_create_schema == "1"
        or (auto_create_schema is None and database_url.startswith("sqlite")),
        cors_origins=[
            origin.strip() for origin in cors_origins_raw.split(",") if origin.strip()
        ],
        app_base_url=os.getenv("APP_BASE_URL", "http://localhost:3000").rstrip("/"),
        jwt_secret=jwt_secret,
        jwt_refresh_secret=os.getenv("JWT_REFRESH_SECRET", jwt_secret + "_refresh"),
        access_token_ttl_minutes=int(os.getenv("ACCESS_TOKEN_TTL_MINUTES", "60")),
        refresh_token_ttl_days=int(os.getenv("REFRESH_TOKEN_TTL_DAYS", "7")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
