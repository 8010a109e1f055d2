"""Configuration settings for the application."""

from pydantic import (
    AliasChoices,
    Field,
)
from pydantic_settings import (
    BaseSettings,
    SettingsConfigDict,
)


class Settings(BaseSettings):
    """Pydantic settings class for the application."""

    # Define the settings with default values and types
    # These will be loaded from environment variables or a .env file if not provided
    API_PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "info"  # Options: debug, info, warning, error, critical

    # Completion service (OpenAI chat-completions compatible)
    LLM_API_URL: str = "https://api.openai.com/v1/chat/completions"
    LLM_API_KEY: str | None = Field(
        default=None, validation_alias=AliasChoices("LLM_API_KEY", "OPENAI_API_KEY")
    )
    LLM_MODEL: str = Field(
        default="gpt-4o-mini", validation_alias=AliasChoices("LLM_MODEL", "OPENAI_MODEL")
    )
    LLM_TEMPERATURE: float = 0.2
    LLM_TIMEOUT: float = 60.0  # seconds, per completion round

    # Hosted data store / identity provider
    STORE: str = "supabase"  # Options: supabase, memory
    SUPABASE_URL: str = "http://localhost:54321"
    SUPABASE_ANON_KEY: str | None = None
    STORE_TIMEOUT: float = 15.0

    # Public site, used for links handed out by the agent
    SITE_URL: str = "http://localhost:3000"

    # CLI client
    PORTAL_ACCESS_TOKEN: str | None = None

    # Load environment variables from a .env file
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
