from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./rankledger.db"
    APP_ENV: str = "development"

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Comma-separated allowed origins, or "*" to allow all.
    CORS_ORIGINS: str = "*"

    # Ledger writer: optimistic-concurrency attempts per reported outcome
    # and the upper bound of the random pause between two attempts.
    RECORD_MAX_ATTEMPTS: int = 5
    RECORD_RETRY_JITTER: float = 0.05

    DIGEST_WINDOW_DAYS: int = 7

    # Create missing tables on startup (local SQLite); Alembic owns the schema elsewhere.
    AUTO_CREATE_TABLES: bool = False

    # Seconds a SQLite writer waits on a locked database before failing.
    SQLITE_BUSY_TIMEOUT: float = 30.0

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
