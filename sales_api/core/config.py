from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    DATABASE_URL: str = "sqlite:///./sales.db"
    LOG_LEVEL: str = "INFO"

    # Defaults applied by the product list endpoint when page/rows are omitted
    QUERY_DEFAULT_PAGE: int = 1
    QUERY_DEFAULT_ROWS: int = 10

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra environment variables
    )


settings = Settings()
