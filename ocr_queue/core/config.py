from __future__ import annotations

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_NO_TEXT_SENTINEL = "No text found."

EXTRACTION_PROMPT_TEMPLATE = (
    "Extract all text from this image, including any handwritten text. "
    "If there is no discernible text, return the phrase '{sentinel}'."
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"
    log_json: bool = False

    # Extraction provider: gemini | openai | mock
    extraction_provider: str = "gemini"
    no_text_sentinel: str = DEFAULT_NO_TEXT_SENTINEL
    # Built from no_text_sentinel unless set explicitly
    extraction_prompt: str | None = None

    # Gemini (API_KEY is accepted for compatibility with older deployments)
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "API_KEY"),
    )
    gemini_model: str = "gemini-2.5-flash"

    # OpenAI (only needed when extraction_provider=openai)
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"

    # Inline image payloads above this size are rejected at capture time
    max_upload_bytes: int = 20 * 1024 * 1024

    @model_validator(mode="after")
    def _default_prompt(self) -> Settings:
        if not self.extraction_prompt:
            self.extraction_prompt = EXTRACTION_PROMPT_TEMPLATE.format(sentinel=self.no_text_sentinel)
        return self


settings = Settings()
