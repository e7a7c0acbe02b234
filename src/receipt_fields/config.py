from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Candidate lists
    TOP_CANDIDATES: int = 3
    HISTORY_CAPACITY: int = 10
    DEDUP_TOLERANCE: float = 0.01

    # Layout heuristics (normalized image coordinates)
    DATE_TOP_REGION: float = 0.3
    PAYEE_TOP_REGION: float = 0.4
    ITEM_BAND_TOP: float = 0.3
    ITEM_BAND_BOTTOM: float = 0.8
    PROXIMITY_THRESHOLD: float = 0.1

    # Typography
    LARGE_FONT_SIZE: float = 16

    # Payee / purpose
    PAYEE_MIN_LENGTH: int = 2
    PURPOSE_CONFIDENCE: float = 0.7

    # Review session
    SELECTION_SOURCE: str = "範囲選択"

    # Logging (CLI only)
    LOG_LEVEL: str = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="RECEIPT_FIELDS_",
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
