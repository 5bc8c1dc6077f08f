from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "postgresql+psycopg://postgres:postgres@db:5432/folda_finances"
    app_env: str = "dev"
    app_cors_origins: str = "http://localhost:3000,http://localhost:5173,https://folda-finances.vercel.app"
    log_level: str = "INFO"
    # HS256 secret shared with the identity provider (Supabase project JWT secret)
    jwt_secret: str = "your-secret-key"
    jwt_audience: str | None = None
    jwt_leeway_seconds: int = 30
    invitation_ttl_days: int = 7
    default_max_members: int = 5
    default_budget_name: str = "My Budget"


settings = Settings()
