from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    app_env: str = "prod"
    database_url: str
    api_key: str
    log_level: str = "INFO"
    streak_lookback_cap: int = Field(default=365, ge=1)
    seed_default_badges: bool = True


settings = Settings()
