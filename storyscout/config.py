"""Runtime settings, read from ``STORYSCOUT_*`` environment variables or ``.env``."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STORYSCOUT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Crawling
    user_agent: str = DEFAULT_USER_AGENT
    fetch_timeout: float = 10.0  # seconds
    max_pages: int = 5
    crawl_delay: float = 1.0  # seconds between page fetches

    # Story generation
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    llm_max_attempts: int = 4
    llm_base_delay: float = 2.0  # seconds

    # Export / persistence
    gherkin_dir: str = "gherkin-scenarios"
    save_delay: float = 1.0

    log_level: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
