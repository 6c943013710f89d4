# backend/coworking/config.py

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repository root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/sqlite/coworking.db"
    redis_url: Optional[str] = None

    # Upper bound for day-by-day period expansion
    max_rental_days: int = 365

    # Display grid for hourly occupancy (inclusive hours)
    occupancy_first_hour: int = 9
    occupancy_last_hour: int = 21
    occupancy_cache_ttl_seconds: int = 300

    # Transaction bounds, seconds
    transaction_timeout: int = 30
    create_transaction_timeout: int = 45
    bulk_transaction_timeout: int = 60

    application_number_width: int = 7

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_prefix="COWORKING_",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # relative sqlite path is resolved against the repository root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
