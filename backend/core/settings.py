"""
Service configuration, read from the environment and an optional .env file.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # MongoDB
    mongo_db_uri: str = "mongodb://localhost:27017"
    mongo_db_name: str = "hub-app-db"
    download_info_collection: str = "downloadInfo"
    total_download_collection: str = "totalDownload"
    mongo_timeout_ms: int = 5000

    # HTTP
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: List[str] = ["*"]
    dev: bool = False

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
