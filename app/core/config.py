from functools import lru_cache
from typing import Literal
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "Storefront"
    DEBUG: bool = False
    GIT_SHA: str = "unknown"
    ALLOWED_ORIGINS: str = ""  # CSV

    # Mongo
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "storefront"
    MONGO_TLS: bool = False
    products_collection: str = "products"

    # Redis (empty = disabled)
    REDIS_URL: str = ""

    # Trending cache
    trending_cache_ttl: int = 60               # seconds
    trending_cache_prefix: str = "trending"    # redis key namespace

    # Recommendations
    default_reco_limit: int = 4
    max_reco_limit: int = 50
    uploads_prefix: str = "/uploads"

    # Catalog listings
    new_arrivals_days: int = 14
    best_sellers_limit: int = 10

    # API
    api_prefix: str = "/api"

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True)

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
