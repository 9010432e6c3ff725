# config.py
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Service configuration, read from STRINGS_* environment variables or .env."""

    app_name: str = "String Analyzer Service"
    version: str = "1.0.0"

    # "memory" keeps records in two dicts; "sql" uses SQLModel on database_url
    store_backend: str = "memory"
    database_url: str = "sqlite://"

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = {"env_prefix": "STRINGS_", "env_file": ".env", "extra": "ignore"}


settings = Settings()
