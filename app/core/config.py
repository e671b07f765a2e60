from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")

    schedule_service_url: str = Field("http://localhost:3010", alias="SCHEDULE_SERVICE_URL")
    violation_service_url: str = Field("http://localhost:3004", alias="VIOLATION_SERVICE_URL")
    achievement_service_url: str = Field("http://localhost:3005", alias="ACHIEVEMENT_SERVICE_URL")
    peer_timeout_seconds: float = Field(5.0, alias="PEER_TIMEOUT_SECONDS")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    allowed_origins: Optional[str] = Field(None, alias="ALLOWED_ORIGINS")

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
