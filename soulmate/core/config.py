from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, PostgresDsn, RedisDsn, computed_field
from typing import Literal, Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    # Security: no default credentials - they must be set in .env
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_DB: str = "soulmate"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432

    @computed_field
    def DATABASE_URL(self) -> PostgresDsn:
        return PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )

    # Shared rate-limit backend for multi-worker deployments
    REDIS_URL: RedisDsn = "redis://localhost:6379/0"

    # AI enrichment
    GEMINI_API_KEY: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = None
    AI_PREFERRED_PROVIDER: Literal["gemini", "openai"] = "gemini"
    GEMINI_MODEL: str = "gemini-flash-latest"
    OPENAI_MODEL: str = "gpt-4o"
    ENRICHMENT_TIMEOUT_SECONDS: float = 10.0  # Upper bound for any single AI call

    # Discovery
    DISCOVERY_DEFAULT_LIMIT: int = 10
    DEFAULT_MAX_DISTANCE_MILES: float = 50.0

    # Rate limiting
    RATE_LIMIT_MAX_REQUESTS: int = 100
    RATE_LIMIT_WINDOW_MS: int = 15 * 60 * 1000
    RATE_LIMITER_IDLE_TTL_SECONDS: int = 24 * 3600
    RATE_LIMITER_MAX_KEYS: int = Field(10000, ge=1)
    RATE_LIMITER_CLEANUP_INTERVAL_SECONDS: int = 3600

settings = Settings()
