from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # HTTP fetcher
    http_timeout: float = 10.0
    http_user_agent: str = DEFAULT_USER_AGENT
    http_verify_ssl: bool = True  # set False behind corporate SSL-inspection proxies
    allow_private_hosts: bool = False

    # Metadata extraction
    description_min_words: int = 10
    description_max_chars: int = 350
    max_candidate_images: int = 20
    excerpt_max_chars: int = 8000
    prompt_excerpt_chars: int = 4000

    # Gemini
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    model_timeout: float = 20.0

    # Placeholder images
    placeholder_image_base: str = "https://picsum.photos/seed"

    # Fallback chain
    remote_analyze_url: Optional[str] = None
    remote_timeout: float = 20.0
    remote_max_retries: int = 1
    mock_delay: float = 1.5

    # Logging
    log_level: str = "INFO"


settings = Settings()
