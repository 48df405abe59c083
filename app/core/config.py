from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    admin_token_expire_days: int = Field(7, alias="ADMIN_TOKEN_EXPIRE_DAYS")
    instructor_token_expire_days: int = Field(14, alias="INSTRUCTOR_TOKEN_EXPIRE_DAYS")
    portal_token_expire_days: int = Field(14, alias="PORTAL_TOKEN_EXPIRE_DAYS")

    # Portal passcodes: 6 digits, bcrypt work factor 10, valid for 120 days
    portal_code_ttl_days: int = Field(120, alias="PORTAL_CODE_TTL_DAYS")
    portal_code_bcrypt_rounds: int = Field(10, alias="PORTAL_CODE_BCRYPT_ROUNDS")

    allowed_origins: Optional[str] = Field(None, alias="ALLOWED_ORIGINS")
    default_payment_title: str = Field("Tutoring tuition", alias="DEFAULT_PAYMENT_TITLE")

    outbox_batch_size: int = Field(100, alias="OUTBOX_BATCH_SIZE")
    outbox_max_attempts: int = Field(5, alias="OUTBOX_MAX_ATTEMPTS")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    seed_admin_password: Optional[str] = Field(None, alias="SEED_ADMIN_PASSWORD")
    seed_instructor_password: Optional[str] = Field(None, alias="SEED_INSTRUCTOR_PASSWORD")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def cors_origins(self) -> List[str]:
        if not self.allowed_origins:
            return ["*"]
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


settings = Settings()
