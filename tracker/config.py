from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./tracker.db"
    default_tz: str = "UTC"  # "local" time for period boundaries
    log_level: str = "INFO"

    # Key-value slot holding the whole serialized store
    storage_key: str = "tracker_data_v2"

    # Number of recent periods used by history, streaks and completion rate
    history_limit: int = 8

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
