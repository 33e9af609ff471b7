from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "local"
    APP_NAME: str = "inventory-catalog"
    LOG_LEVEL: str = "INFO"

    ADMIN_JWT_SECRET: str = "change_me_admin"
    PUBLIC_JWT_SECRET: str = "change_me_public"
    PUBLIC_COOKIE_NAME: str = "catalog_jwt"

    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    DATABASE_URL: str
    REDIS_URL: str = ""

    FIELD_LIBRARY_CACHE_BACKEND: str = "memory"  # memory | redis
    FIELD_LIBRARY_CACHE_TTL_SECONDS: int = 300

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()
