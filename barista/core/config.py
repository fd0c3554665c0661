"""Application configuration."""
from typing import Optional
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class OrderingLimits(BaseModel):
    """Thresholds shared by the conversation, order and extraction logic.

    Not read from the environment. Tests build their own instance to vary them.
    """

    max_messages: int = 50
    max_total_items: int = 20
    max_item_quantity: int = 10
    confidence_floor: float = 0.5
    history_window: int = 10
    rag_limit: int = 5
    semantic_threshold: float = 0.7


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI
    openai_api_key: str
    openai_model: str = "gpt-4o-mini"
    embedding_model: str = "text-embedding-3-small"

    # Database
    database_url: str

    # Cache (in-process when unset)
    redis_url: Optional[str] = None
    context_cache_ttl_seconds: int = 600

    # Menu
    seed_menu_on_startup: bool = True

    # Restaurant
    restaurant_name: str = "Barista"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
