from functools import lru_cache
from typing import Annotated, Any, List, Literal, Optional

from pydantic import AnyUrl, BeforeValidator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from chat_proxy.providers.base import ProviderConfig


def parse_cors(v: Any) -> List[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "chat-proxy"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    API_PREFIX: str = "/api"

    BACKEND_CORS_ORIGINS: Annotated[
        List[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> List[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    SENTRY_DSN: Optional[AnyUrl] = None

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Provider
    OPENROUTER_API_KEY: str = ""
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    CHAT_MODEL: str = "openrouter/sonoma-dusk-alpha"
    SYSTEM_PROMPT: str = (
        "You are a helpful assistant that can answer questions and help with tasks"
    )

    # Streaming
    STREAM_TIMEOUT_SECONDS: float = 30
    SEND_REASONING: bool = True
    SEND_SOURCES: bool = True

    def provider_config(self) -> ProviderConfig:
        return ProviderConfig(
            name="openrouter",
            api_key=self.OPENROUTER_API_KEY,
            base_url=self.OPENROUTER_BASE_URL,
            model=self.CHAT_MODEL,
            system_prompt=self.SYSTEM_PROMPT,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
