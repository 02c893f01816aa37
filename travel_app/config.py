from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Travel booker"
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/travel_booking.db"

    # JWT
    jwt_secret: str = "change-me-access-secret"
    jwt_refresh_secret: str = "change-me-refresh-secret"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    refresh_token_expire_minutes: int = 60 * 24 * 7

    # Advanced Flights System
    afs_base_url: str = "https://advanced-flights-system.replit.app/api"
    afs_api_key: str = ""
    afs_timeout: float = 15.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
