from typing import Literal
from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./shiftdesk.db"
    SQL_ECHO: bool = False
    LOG_LEVEL: str = "INFO"

    BACKEND_CORS_ORIGINS: list[AnyHttpUrl] = []

    # who may approve a request that is not addressed to anyone (admins always can)
    OPEN_EXCHANGE_APPROVERS: Literal["any_worker", "same_workplace"] = "any_worker"
    # what happens to pending exchange requests when one of their shifts is deleted
    PENDING_EXCHANGE_ON_SHIFT_DELETE: Literal["block", "reject"] = "block"
    # regenerating a report either adds a snapshot or replaces the previous ones
    REPORT_REGENERATION: Literal["snapshot", "replace"] = "snapshot"

    UPCOMING_SHIFTS_DAYS: int = 14

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
