# phoneverify/config.py
import os
from datetime import timedelta
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application Settings
    APP_NAME: str = "Phone Verification API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.environ.get("PORT", 8080))

    # Bot Settings
    BOT_TOKEN: str = ""
    # Comma-separated admin identifiers (consumed by the bot, not by verification)
    ADMIN_ID: str = ""

    # Database Settings
    DATABASE_URL: str = "sqlite:///./data/users.db"

    # Twilio Verify Settings
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_VERIFY_SERVICE_SID: str = ""

    # Offline provider must be switched on explicitly; it is never a silent fallback
    OFFLINE_VERIFICATION: bool = False

    # Verification policy
    OTP_TTL_MINUTES: int = 10
    OTP_LENGTH: int = 6
    MAX_OTP_ATTEMPTS: int = 5
    PROVIDER_TIMEOUT_SECONDS: float = 15.0
    PENDING_SWEEP_INTERVAL_SECONDS: int = 60
    DEFAULT_COUNTRY_CODE: str = "234"

    # Pending verifications live in process memory unless Redis is configured
    REDIS_URL: Optional[str] = None

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def admin_ids(self) -> List[str]:
        return self._split_csv(self.ADMIN_ID)

    @property
    def twilio_credentials(self) -> List[str]:
        return [self.TWILIO_ACCOUNT_SID, self.TWILIO_AUTH_TOKEN, self.TWILIO_VERIFY_SERVICE_SID]

    @property
    def twilio_configured(self) -> bool:
        return all(self.twilio_credentials)

    @property
    def otp_ttl(self) -> timedelta:
        return timedelta(minutes=self.OTP_TTL_MINUTES)


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings: Settings = get_settings()
