from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RECIPI_", env_file=".env")

    db_url: str = "sqlite:///./recipi.db"
    media_dir: Path = Path("media")
    media_url: str = "/media"
    secret_key: str = "dev-secret-change-me-before-deploying"
    token_ttl_minutes: int = 60 * 24
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"


CONFIG = Config()
