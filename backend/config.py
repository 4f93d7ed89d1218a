from __future__ import annotations
import os
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
    DATABASE_NAME: str = os.getenv("DATABASE_NAME", "okna_mashtab")

    # Outbound mail relay; notifications are skipped while EMAIL_USER is empty
    SMTP_HOST: str = "smtp.mail.ru"
    SMTP_PORT: int = 465
    EMAIL_USER: str = ""
    EMAIL_PASS: str = ""
    NOTIFY_TO: str = "mashtabss@mail.ru"

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    CORS_ORIGINS: str = "*"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def notifications_enabled(self) -> bool:
        return bool(self.EMAIL_USER and self.EMAIL_PASS and self.NOTIFY_TO)


settings = Settings()
