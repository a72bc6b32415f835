from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./inventory.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 4000
    FRONTEND_ORIGINS: List[str] = ["*"]
    RESET_DB: bool = False

    UPLOADS_DIR: str = "./uploads"
    IMAGE_MAX_BYTES: int = 5 * 1024 * 1024
    IMPORT_MAX_BYTES: int = 10 * 1024 * 1024
    IMPORT_SWEEP_ENABLED: bool = True
    IMPORT_SWEEP_INTERVAL_SECONDS: int = 300
    IMPORT_STALE_AFTER_SECONDS: int = 3600

    DEFAULT_ACTOR: str = "system"
    EXPORT_FILENAME: str = "products.csv"

    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
