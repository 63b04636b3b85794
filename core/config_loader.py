from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DATABASE_URL: str = "sqlite:///./thanks_portal.db"

    # auth
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # comma separated, e.g. "http://localhost:5173,https://portal.example.com"
    BACKEND_CORS_ORIGINS: str = ""

    LOG_LEVEL: str = "INFO"

    # domain knobs
    IMPORT_BATCH_SIZE: int = 100
    THANKS_POINTS: int = 1
    RECENT_THANKS_LIMIT: int = 10

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.BACKEND_CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
