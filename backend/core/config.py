from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_DEBUG: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # True for production (structured JSON), False for dev (colored)

    # Binder
    BINDER_CACHE_SCHEMAS: bool = True  # Reuse field descriptors per schema type
    BINDER_MERGE_QUERY: bool = True    # HTTP injector overlays the body on query params

    @property
    def is_production(self) -> bool:
        return not self.APP_DEBUG

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
