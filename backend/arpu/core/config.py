from pydantic_settings import BaseSettings
from typing import List, Any
import json
from pathlib import Path


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "Arpu Foundation"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    TESTING: bool = False
    SECRET_KEY: str
    API_VERSION: str = "v1"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str
    DB_ECHO: bool = False

    # ==========================================
    # Redis
    # ==========================================
    REDIS_URL: str = ""

    # ==========================================
    # Celery
    # ==========================================
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"
    OVERDUE_SWEEP_INTERVAL_SECONDS: int = 3600

    # ==========================================
    # Authentication
    # ==========================================
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60
    EMAIL_VERIFICATION_EXPIRE_HOURS: int = 24
    BCRYPT_ROUNDS: int = 12  # 4 for tests, 12 for prod

    # ==========================================
    # Frontend URL (links inside emails)
    # ==========================================
    FRONTEND_URL: str = "http://localhost:3000"

    # ==========================================
    # Payment Gateway
    # ==========================================
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_WEBHOOK_SECRET: str = ""
    PAYMENT_FEE_PERCENT: float = 2.36  # gateway fee + GST

    # ==========================================
    # Donations
    # ==========================================
    DONATION_MIN_PAISE: int = 10000  # ₹100
    DONATION_MAX_PAISE: int = 10000000  # ₹1,00,000

    # ==========================================
    # Commission
    # ==========================================
    COMMISSION_VOLUNTEER_PERCENT: float = 5.0
    COMMISSION_COORDINATOR_PERCENT: float = 15.0
    COMMISSION_ANCESTOR_PERCENT: float = 2.0
    COMMISSION_MAX_DEPTH: int = 20

    # ==========================================
    # Organization (printed on receipts and certificates)
    # ==========================================
    ORG_NAME: str = "ARPU FUTURE RISE LIFE FOUNDATION"
    ORG_CIN: str = "U88900DL2025NPL451013"
    ORG_PAN: str = "ABDCA2272K"
    ORG_REGISTRATION_NO: str = "ABDCA2272KF20251"
    ORG_DOCUMENTATION_NO: str = "ABDCA2272KF2025101"
    ORG_DOCUMENT_PREFIX: str = "ARPU"
    ORG_SIGNATORY: str = "President"

    # ==========================================
    # Email
    # ==========================================
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    EMAIL_FROM: str = "noreply@arpufoundation.org"
    EMAIL_FROM_NAME: str = "Arpu Foundation"

    # SendGrid Configuration (preferred when a key is present)
    SENDGRID_API_KEY: str = ""
    USE_SENDGRID: bool = True

    # ==========================================
    # CORS (stored as comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://127.0.0.1:3000"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Rate Limiting
    # ==========================================
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60

    # ==========================================
    # Request limits
    # ==========================================
    MAX_REQUEST_SIZE: int = 10 * 1024 * 1024  # 10MB

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    # ==========================================
    # Paths
    # ==========================================
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    def is_dev_mode(self) -> bool:
        """Check if running in development mode"""
        return self.ENVIRONMENT == "development" or self.DEBUG

    @property
    def razorpay_configured(self) -> bool:
        return bool(self.RAZORPAY_KEY_ID and self.RAZORPAY_KEY_SECRET)


# Create settings instance
settings = Settings()
