# isp_billing/core/config.py - Centralized settings management using Pydantic
from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Dict, List, Optional

DEFAULT_ACCOUNT_ROLE_CODES = {
    "cash": "1000",
    "bank": "1010",
    "mobile_money": "1020",
    "receivable": "1100",
    "payable": "2000",
    "service_revenue": "4000",
    "late_fee_revenue": "4020",
    "discount_allowed": "5080",
}

DEFAULT_EXPENSE_CATEGORY_CODES = {
    "bandwidth": "5000",
    "infrastructure": "5010",
    "salary": "5020",
    "commission": "5030",
    "maintenance": "5040",
    "office": "5050",
    "utilities": "5060",
    "other": "5070",
}


class Settings(BaseSettings):
    """Application settings with validation and type safety"""

    # Application Environment
    ENV: str = Field(default="dev", description="Environment: dev, test, staging, prod")
    DEBUG: bool = Field(default=False, description="Debug mode")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8000, ge=1, le=65535, description="API port")
    API_TITLE: str = Field(default="ISP Billing API", description="API title")
    API_VERSION: str = Field(default="1.0.0", description="API version")

    # Database Configuration
    DATABASE_URL: str = Field(default="sqlite:///./isp_billing.db", description="Database connection URL")
    DATABASE_ECHO: bool = Field(default=False, description="Echo SQL queries")
    DATABASE_POOL_SIZE: int = Field(default=5, ge=1, le=100, description="Connection pool size")
    DATABASE_MAX_OVERFLOW: int = Field(default=10, ge=0, le=100, description="Max overflow connections")
    DATABASE_POOL_TIMEOUT: int = Field(default=30, ge=1, le=300, description="Pool timeout in seconds")
    DATABASE_POOL_RECYCLE: int = Field(default=3600, ge=300, description="Pool recycle time in seconds")

    # CORS Configuration
    CORS_ORIGINS: List[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",  # Vite dev server
            "http://127.0.0.1:5173"
        ],
        description="CORS allowed origins"
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True, description="Allow CORS credentials")

    # Billing
    BILLING_DEFAULT_DUE_DAYS: int = Field(default=10, ge=1, le=365, description="Days until a generated invoice is due")
    BILLING_DEFAULT_CYCLE: str = Field(default="monthly", description="Billing cycle when none is supplied")
    AUTO_POST_JOURNALS: bool = Field(default=False, description="Post invoices and payments to the journal as they are written")

    # Chart of accounts bindings
    ACCOUNT_ROLE_CODES: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_ACCOUNT_ROLE_CODES),
        description="Logical posting role -> account code"
    )
    EXPENSE_CATEGORY_CODES: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_EXPENSE_CATEGORY_CODES),
        description="Expense category -> expense account code"
    )
    DEFAULT_EXPENSE_ACCOUNT_CODE: str = Field(default="5070", description="Expense account for unmapped categories")

    # WhatsApp Bridge Configuration
    WA_ENABLED: bool = Field(default=False, description="Send payment receipts over WhatsApp")
    WA_BRIDGE_URL: str = Field(default="http://localhost:3001", description="WhatsApp bridge URL")
    WA_BRIDGE_API_KEY: str = Field(default="dev-secret", description="WhatsApp bridge API key")
    WA_BRIDGE_TIMEOUT: int = Field(default=30, ge=1, le=300, description="WhatsApp bridge timeout")
    COMPANY_NAME: str = Field(default="Storm Fiber", description="Name used in customer messages")
    COMPANY_CONTACT: str = Field(default="", description="Support contact appended to customer messages")

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(default="detailed", description="Log format: simple, detailed, json")
    LOG_FILE_PATH: Optional[str] = Field(default=None, description="Log file path")
    LOG_MAX_SIZE: int = Field(default=10485760, description="Max log file size in bytes (10MB)")
    LOG_BACKUP_COUNT: int = Field(default=5, description="Number of log backup files")

    # Development Settings
    DEV_SHOW_DOCS: bool = Field(default=True, description="Show API docs in development")
    DEV_LOG_SQL: bool = Field(default=False, description="Log SQL queries in development")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"  # Ignore extra environment variables

    @validator("ENV")
    def validate_environment(cls, v):
        allowed_envs = ["dev", "development", "test", "staging", "prod", "production"]
        if v.lower() not in allowed_envs:
            raise ValueError(f"ENV must be one of: {allowed_envs}")
        return v.lower()

    @validator("DATABASE_URL")
    def validate_database_url(cls, v):
        allowed_prefixes = (
            "postgresql://",
            "postgresql+psycopg2://",
            "postgresql+psycopg://",
            "sqlite://",
        )
        if not v.startswith(allowed_prefixes):
            raise ValueError("DATABASE_URL must be a valid database connection string (postgresql, postgresql+psycopg, postgresql+psycopg2, or sqlite)")
        return v

    @validator("BILLING_DEFAULT_CYCLE")
    def validate_billing_cycle(cls, v):
        if v not in ("monthly", "weekly"):
            raise ValueError("BILLING_DEFAULT_CYCLE must be 'monthly' or 'weekly'")
        return v

    @validator("ACCOUNT_ROLE_CODES")
    def validate_account_roles(cls, v):
        # Partial overrides keep the remaining default bindings
        merged = dict(DEFAULT_ACCOUNT_ROLE_CODES)
        merged.update(v)
        return merged

    @validator("LOG_LEVEL")
    def validate_log_level(cls, v):
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of: {allowed_levels}")
        return v.upper()

    @validator("LOG_FORMAT")
    def validate_log_format(cls, v):
        if v.lower() not in ("simple", "detailed", "json"):
            raise ValueError("LOG_FORMAT must be one of: simple, detailed, json")
        return v.lower()

    @validator("CORS_ORIGINS", pre=True)
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            # Handle comma-separated string
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode"""
        return self.ENV in ["dev", "development"]

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    def get_cors_config(self) -> dict:
        """Get CORS configuration for FastAPI"""
        return {
            "allow_origins": self.CORS_ORIGINS,
            "allow_credentials": self.CORS_ALLOW_CREDENTIALS,
            "allow_methods": ["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"],
        }


# Create settings instance with validation
try:
    settings = Settings()
except Exception as e:
    print(f"Configuration error: {e}")
    print("Please check your .env file and environment variables")
    raise

# Export settings
__all__ = ["settings", "Settings", "DEFAULT_ACCOUNT_ROLE_CODES", "DEFAULT_EXPENSE_CATEGORY_CODES"]
