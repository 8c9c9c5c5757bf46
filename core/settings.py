from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # PostgreSQL connection; leave DATABASE_HOST empty to fall back to SQLite
    DATABASE_NAME: str = "gridfield"
    DATABASE_USER: str = "gridfield"
    DATABASE_PASSWORD: str = ""
    DATABASE_HOST: str | None = None
    DATABASE_PORT: int = 5432

    SQLITE_PATH: str = "./gridfield.db"

    @property
    def DATABASE_URL(self) -> str:
        if self.DATABASE_HOST:
            return (
                f"postgresql+psycopg2://{self.DATABASE_USER}:"
                f"{self.DATABASE_PASSWORD}@{self.DATABASE_HOST}:"
                f"{self.DATABASE_PORT}/{self.DATABASE_NAME}"
            )
        return f"sqlite:///{self.SQLITE_PATH}"

    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = False

    # Field registry limits
    FIELD_PARENT_MAX_DEPTH: int = 32
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 500

    # Upsert the system field types when the API boots
    SEED_ON_STARTUP: bool = False

    CORS_ORIGINS: list[str] = ["*"]

    # Sentry error tracking
    SENTRY_DSN: str | None = None
    SENTRY_ENVIRONMENT: str = "development"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
