from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./cartrules.db"
    REDIS_URL: str = "redis://localhost:6379/0"

    # rule backend (rule source + execution tracking)
    APP_BASE_URL: str = "http://localhost:8000"
    CORS_ORIGINS: str = "*"

    # storefront side
    STOREFRONT_URL: str = "http://localhost:9292"
    SHOP: str | None = None
    SESSION_ID: str | None = None  # durable host session token, if the host has one

    DEBOUNCE_MS: int = 500
    POLL_INTERVAL_S: float = 30.0
    SELF_TRIGGER_COOLDOWN_MS: int = 1000
    HTTP_TIMEOUT_S: float = 10.0

    LOG_LEVEL: str = "INFO"
    ENV: str = "dev"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
