from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Empty env values fall back to defaults, same as unset.
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_ignore_empty=True)

    version: str = Field(default="1.0.0", alias="VERSION")
    backend_url: str = Field(default="http://localhost:8080/version", alias="BACKEND")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8080, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    metrics_max_samples: int | None = Field(default=None, alias="METRICS_MAX_SAMPLES", gt=0)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
