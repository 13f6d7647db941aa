"""Application configuration.

Defines `Settings`, read from environment variables and an optional `.env`
file, and the module-level `settings` instance the rest of the app imports.
"""
# app/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "SurveyHub"
    BACKEND_URL: str = "http://127.0.0.1:8000"
    DEBUG: bool = True
    LOG_PATH: str = "logging"
    SECRET_KEY: str = "change-me-in-env"
    DATABASE_URL: str = "sqlite:///./app.db"

    # cover images are written to PUBLIC_DIR/IMAGE_DIR and served under /public
    PUBLIC_DIR: str = "public"
    IMAGE_DIR: str = "images"

    PAGE_SIZE: int = 5
    ACCESS_TOKEN_TTL: int = 60 * 60 * 24  # 24h


settings = Settings()
