"""
Configuration settings for RFID Stock
"""
import os
from pathlib import Path
from typing import List

import dotenv
from pydantic_settings import BaseSettings

# Resolve .env paths relative to this file so settings load regardless of cwd.
_CONFIG_DIR = Path(__file__).resolve().parent.parent  # backend/
_PROJECT_ROOT = _CONFIG_DIR.parent
_ENV_CANDIDATES = [
    _CONFIG_DIR / ".env",
    _PROJECT_ROOT / ".env",
]
_ENV_FILE = [str(p) for p in _ENV_CANDIDATES if p.is_file()]

# Load .env into os.environ so the os.getenv defaults below see it too.
for p in _ENV_CANDIDATES:
    if p.is_file():
        dotenv.load_dotenv(p, override=False)
        break


class Settings(BaseSettings):
    """Application settings"""

    # App
    APP_NAME: str = "RFID Stock"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Control-plane database: tenants, users, permission grants, activity log.
    MASTER_DATABASE_URL: str = os.getenv("MASTER_DATABASE_URL", "sqlite:///./rfidstock_master.db")
    # Create control-plane tables on startup (dev/demo; production uses migrations).
    AUTO_CREATE_MASTER_SCHEMA: bool = os.getenv("AUTO_CREATE_MASTER_SCHEMA", "False").lower() == "true"

    # Tenant databases: one per client code, URL stored on the tenant record.
    # A tenant store that does not answer within this bound is treated as unreachable.
    TENANT_CONNECT_TIMEOUT_SECONDS: int = int(os.getenv("TENANT_CONNECT_TIMEOUT_SECONDS", "10"))
    TENANT_STATEMENT_TIMEOUT_MS: int = int(os.getenv("TENANT_STATEMENT_TIMEOUT_MS", "120000"))

    # Security (token verification; issuance lives in the login service)
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-me-in-production")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "720"))

    # CORS - comma-separated
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173,http://localhost:8000"

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list. "*" is dropped because credentials are allowed."""
        origins = [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]
        return [o for o in dict.fromkeys(origins) if o != "*"]

    class Config:
        env_file = _ENV_FILE if _ENV_FILE else [".env", "../.env"]
        case_sensitive = True
        extra = "ignore"


settings = Settings()
