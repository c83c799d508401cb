"""
Environment configuration for the hostel ledger service.
Uses Pydantic's settings management to handle environment variables
with proper type validation and default values.
"""

import json
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    # Application configuration
    APP_NAME: str = Field(default="Hostel Ledger Service", alias="PROJECT_NAME")
    API_VERSION: str = Field(default="v1", alias="PROJECT_VERSION")
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: List[str] = Field(default=["*"], alias="BACKEND_CORS_ORIGINS")

    # Database configuration
    DATABASE_URL: str = "sqlite:///./hostel_ledger.db"
    DATABASE_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_POOL_OVERFLOW: int = 10
    DB_CONNECT_ARGS: Dict[str, Any] = {}

    # Monitoring and logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "colored"
    LOG_DIR: Optional[str] = None

    # Billing rules
    CURRENCY: str = "INR"
    STANDARD_DEPOSIT_AMOUNT: Decimal = Decimal("10000")
    DEPOSIT_PAID_THRESHOLD_RATIO: Decimal = Decimal("0.5")
    DEFAULT_MESS_CHARGE_PER_MONTH: Decimal = Decimal("3000")
    DEFAULT_PACKAGE_MONTHS: int = 5
    MAX_PACKAGE_MONTHS: int = 5
    DAYS_PER_BLOCK: int = 30
    CREATE_TRANSFER_ADJUSTMENT_FEE: bool = True

    # Settlement accounts (A collects rent and deposit, B collects mess)
    SETTLEMENT_ACCOUNT_A_NAME: str = "Hostel Account"
    SETTLEMENT_ACCOUNT_B_NAME: str = "Mess Account"

    # Package generation advisory lock
    PACKAGE_LOCK_TTL_SECONDS: float = 10.0
    PACKAGE_LOCK_RELEASE_DELAY_SECONDS: float = 2.0

    # Validators
    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse CORS_ORIGINS from string to list"""
        if isinstance(v, str):
            # Handle JSON string format from .env
            if v.startswith('[') and v.endswith(']'):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator('LOG_FORMAT')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        allowed = {"colored", "json", "standard"}
        if v not in allowed:
            raise ValueError(f"LOG_FORMAT must be one of: {', '.join(sorted(allowed))}")
        return v

    def get_database_url(self) -> str:
        """Get database URL"""
        return self.DATABASE_URL

    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    def deposit_paid_threshold(self) -> Decimal:
        """Net deposit payments at or above this amount count as a paid deposit."""
        return self.STANDARD_DEPOSIT_AMOUNT * self.DEPOSIT_PAID_THRESHOLD_RATIO

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT == "production"

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
