from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Any, Dict, List, Optional
from urllib.parse import quote_plus


DEFAULT_REWARD_TIERS: List[Dict[str, Any]] = [
    {"name": "Eco Starter", "points_threshold": 0},
    {"name": "Eco Guardian", "points_threshold": 100},
    {"name": "Eco Warrior", "points_threshold": 500},
    {"name": "Eco Champion", "points_threshold": 1000},
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="trashdrop/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "TrashDrop API"
    PROJECT_NAME: str = "TrashDrop"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "simple"  # simple | json

    # Database (Supabase Postgres)
    POSTGRES_HOST: str = ""
    POSTGRES_PORT: int = 5432
    POSTGRES_USERNAME: str = ""
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DATABASE: str = "postgres"
    POSTGRES_SCHEMA: str = "public"

    # Full URL wins over the POSTGRES_* parts when set (sqlite is fine for local runs)
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @property
    def database_url(self) -> str:
        """Construct database URL from individual components"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        # URL encode the password to handle special characters
        encoded_password = quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+psycopg2://{self.POSTGRES_USERNAME}:{encoded_password}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DATABASE}"

    # Supabase Auth
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = "authenticated"

    # Rewards
    REWARD_TIERS: List[Dict[str, Any]] = Field(
        default_factory=lambda: [dict(tier) for tier in DEFAULT_REWARD_TIERS]
    )
    HISTORY_PAGE_LIMIT: int = 100

    # Bag orders / recurring pickups
    BAG_DELIVERY_DAYS: int = 3
    SCHEDULE_PREVIEW_COUNT: int = 4

    # Offline sync
    SYNC_MAX_RETRIES: int = 3
    SYNC_BACKOFF_SECONDS: float = 0.5
    SYNC_REQUEST_TIMEOUT_SECONDS: float = 10.0
    LOCAL_STORE_PATH: str = "trashdrop_offline.db"
    API_BASE_URL: str = "http://localhost:8000"

    # CORS
    CORS_ALLOW_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])


settings = Settings()
