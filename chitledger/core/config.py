from typing import Any, List
from pydantic import AnyHttpUrl, field_validator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Application configuration settings.

    Loads values from environment variables or .env file.
    """
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Chit Ledger API"
    LOG_LEVEL: str = "INFO"
    CURRENCY: str = "INR"

    # SECURITY
    SECRET_KEY: str = Field(description="Secret key for JWT encoding")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12

    # DATABASE
    DATABASE_URL: str = Field(description="Async SQLAlchemy connection URL (postgresql+asyncpg://...)")

    # CORS
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = []

    # FUND RULES
    # All amounts are in paise. Rates are fractions of the fund amount
    # (or of the monthly contribution for the bonus rates).
    FUND_DURATION_MONTHS: int = 20
    CONTRIBUTION_RATE: float = Field(default=0.05, description="Monthly contribution as a fraction of the fund amount")
    WITHDRAWN_CONTRIBUTION_RATE: float = Field(default=0.06, description="Monthly contribution owed after a member has withdrawn")
    PAYOUT_BONUS_RATE: float = Field(default=0.20, description="Bonus earned per paid month, as a fraction of the monthly contribution")
    EXPECTED_BONUS_RATE: float = Field(default=0.10, description="Display-only bonus estimate shown with a contribution override")
    COMMISSION_RATE: float = Field(default=0.05, description="Default foreman commission as a fraction of the fund amount")
    LATE_WITHDRAWAL_PENALTY: int = Field(default=100000, description="Penalty per month of delayed withdrawal, in paise")
    GST_RATE: float = Field(default=18, description="GST percentage charged on commission")

    # EMAIL
    SMTP_TLS: bool = True
    SMTP_PORT: int | None = 587
    SMTP_HOST: str | None = None
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    EMAILS_FROM_EMAIL: str | None = "accounts@chitledger.in"
    EMAILS_FROM_NAME: str | None = "Chit Ledger"

    # CELERY
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"
    CELERY_TASK_ALWAYS_EAGER: bool = False
    RATE_LIMIT_STORAGE_URI: str | None = None

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Any) -> Any:
        """
        Parses comma-separated string of CORS origins into a list.
        """
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

settings = Settings()
