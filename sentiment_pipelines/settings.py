from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

from sentiment_pipelines.llm_client import LlmConfig


class SentimentSettings(BaseSettings):
    """
    Environment-driven settings for the model client and batch analysis.
    """

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    # ---- OpenRouter ----
    openrouter_api_key: str = Field(default="dummy-key", alias="OPENROUTER_API_KEY")
    openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1", alias="OPENROUTER_BASE_URL")
    openrouter_referer: str = Field(default="https://sentimentelysia.app", alias="OPENROUTER_HTTP_REFERER")
    openrouter_app_title: str = Field(default="SentimentElysia", alias="OPENROUTER_APP_TITLE")

    llm_model: str = Field(default="google/gemini-flash", alias="SENTIMENT_LLM_MODEL")
    llm_temperature: float = Field(default=0.0, alias="SENTIMENT_LLM_TEMPERATURE")

    request_timeout_sec: float = Field(default=30.0, alias="SENTIMENT_REQUEST_TIMEOUT_SEC")
    max_retries: int = Field(default=2, alias="SENTIMENT_MAX_RETRIES")
    backoff_base_sec: float = Field(default=1.0, alias="SENTIMENT_BACKOFF_BASE_SEC")
    backoff_max_sec: float = Field(default=20.0, alias="SENTIMENT_BACKOFF_MAX_SEC")

    # ---- Batch analysis ----
    # Upper bound on concurrent model calls in analyze_many
    max_workers: int = Field(default=8, alias="SENTIMENT_MAX_WORKERS")

    # Column holding the post text in CSV exports
    csv_content_column: str = Field(default="Content", alias="SENTIMENT_CSV_CONTENT_COLUMN")

    def llm_config(self) -> LlmConfig:
        return LlmConfig(
            api_key=self.openrouter_api_key,
            base_url=self.openrouter_base_url,
            model=self.llm_model,
            temperature=self.llm_temperature,
            timeout_sec=self.request_timeout_sec,
            max_retries=self.max_retries,
            backoff_base_sec=self.backoff_base_sec,
            backoff_max_sec=self.backoff_max_sec,
            referer=self.openrouter_referer,
            app_title=self.openrouter_app_title,
        )


def load_settings() -> SentimentSettings:
    return SentimentSettings()
