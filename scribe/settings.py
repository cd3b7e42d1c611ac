# scribe/settings.py
import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # core
    APP_NAME: str = Field(default="Creative Scribe")
    ENV: str = Field(default=os.getenv("APP_ENV", "dev"))
    DEBUG: bool = Field(default=True)
    LOG_LEVEL: str = Field(default="INFO")
    APP_URL: str = Field(default="http://localhost:3000")

    # provider keys (unset -> echo client for that provider)
    OPENROUTER_API_KEY: str | None = None
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    TOGETHER_API_KEY: str | None = None
    TOGETHER_BASE_URL: str = "https://api.together.xyz/v1"
    MISTRAL_API_KEY: str | None = None
    MISTRAL_BASE_URL: str = "https://api.mistral.ai/v1"
    GROQ_API_KEY: str | None = None
    GROQ_BASE_URL: str = "https://api.groq.com/openai/v1"
    XAI_API_KEY: str | None = None
    XAI_BASE_URL: str = "https://api.x.ai/v1"
    GOOGLE_API_KEY: str | None = None
    GEMINI_OPENAI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    GEMINI_REST_URL: str = "https://generativelanguage.googleapis.com/v1beta"

    # routing / generation
    FREE_STREAMING_MODEL: str = "google/gemini-2.0-flash-exp:free"
    LIVELY_MODEL: str = "gemini-1.5-pro-002"
    LIVELY_MAX_TOKENS: int = 2048
    REQUEST_TIMEOUT: float = 120.0

    # client half
    API_BASE_URL: str = "http://localhost:8000"
    DEFAULT_MODEL: str = "groq"

    # read root-level .env.dev
    model_config = SettingsConfigDict(
        env_file=".env.dev",
        extra="ignore",
    )

    @property
    def app_name(self) -> str:
        return self.APP_NAME


settings = Settings()
