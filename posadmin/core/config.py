from typing import List, Union
import logging

from pydantic import AnyHttpUrl, validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    PROJECT_NAME: str = "POS Admin"
    API_V1_STR: str = "/api/v1"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours
    BCRYPT_ROUNDS: int = 12

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # First administrator created on an empty database
    DEFAULT_ORGANIZATION_NAME: str = "Main Store"
    FIRST_ADMIN_EMAIL: str = "admin@posadmin.local"
    FIRST_ADMIN_PASSWORD: str = "admin12345"
    FIRST_ADMIN_NAME: str = "System Administrator"

    # CORS
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Database
    SQLITE_DATABASE_URI: str = "sqlite:///./posadmin.db"

    # Inventory rules
    LOW_STOCK_THRESHOLD: int = 10
    TRANSFER_DELIVERY_DAYS: int = 3
    DEFAULT_BATCH_SHELF_LIFE_DAYS: int = 365

    # Scheduled database backup
    AUTO_BACKUP_ENABLED: bool = True
    AUTO_BACKUP_HOUR: int = 3  # 0-23
    AUTO_BACKUP_MINUTE: int = 0  # 0-59
    AUTO_BACKUP_KEEP_COUNT: int = 7

    # Scheduled expiry sweep for product batches
    EXPIRY_SWEEP_ENABLED: bool = True
    EXPIRY_SWEEP_HOUR: int = 1
    EXPIRY_SWEEP_MINUTE: int = 30

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
logger.info(f"Loaded settings: API_V1_STR={settings.API_V1_STR}, CORS={settings.BACKEND_CORS_ORIGINS}")
