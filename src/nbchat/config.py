"""Configuration management using Pydantic Settings.

Loads configuration from multiple sources with the following priority (highest first):
1. Environment variables (NBCHAT_* prefix)
2. .env file
3. config.local.yaml (if exists)
4. config.yaml
5. Default values
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CHAT_SYSTEM_PROMPT = """You are a helpful AI assistant embedded in a notebook environment.

Answer questions about code and data clearly, keep code snippets runnable,
and say so when you are unsure about something."""

COMPLETION_SYSTEM_PROMPT = """You are an application built to provide helpful code completion suggestions.
You should only produce code. Keep comments to minimum, use the
programming language comment syntax. Produce clean code.
The code is written in JupyterLab, a data analysis and code development
environment which can execute code extended with additional syntax for
interactive features, such as magics.
Only give raw strings back, do not format the response using backticks.
The output should be a single string, and should only contain the code that will complete the
give code passed as input, no explanation whatsoever.
Do not include the prompt in the output, only the string that should be appended to the current input."""


class CorsSettings(BaseModel):
    """CORS configuration."""

    allowed_origins: list[str] = ["http://localhost:8888"]
    allowed_methods: list[str] = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    allowed_headers: list[str] = [
        "Content-Type",
        "Authorization",
        "X-Request-ID",
    ]


class ServerSettings(BaseModel):
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    timeout_seconds: int = 300
    cors: CorsSettings = Field(default_factory=CorsSettings)


class WebSearchSettings(BaseModel):
    """User settings for the provider-native web search tool."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    enabled: bool | None = None
    external_web_access: bool | None = None
    search_context_size: Literal["low", "medium", "high"] | None = None
    allowed_domains: list[str] | None = None
    blocked_domains: list[str] | None = None
    max_uses: int | None = Field(default=None, ge=1)


class WebFetchSettings(BaseModel):
    """User settings for the provider-native web fetch tool."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    enabled: bool | None = None
    max_uses: int | None = Field(default=None, ge=1)
    max_content_tokens: int | None = Field(default=None, ge=1)
    allowed_domains: list[str] | None = None
    blocked_domains: list[str] | None = None
    citations_enabled: bool | None = None


class ProviderCustomSettings(BaseModel):
    """Provider-level custom settings that control built-in web tools."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    web_search: WebSearchSettings | None = None
    web_fetch: WebFetchSettings | None = None


class ProviderConfig(BaseModel):
    """A configured provider entry (one model on one provider backend)."""

    id: str
    provider: str
    model: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    custom_settings: ProviderCustomSettings | None = None


class ChatSettings(BaseModel):
    """Conversational agent configuration."""

    system_prompt: str = DEFAULT_CHAT_SYSTEM_PROMPT
    default_name: str = "Chat"
    enable_function_tools: bool = True


class CompletionSettings(BaseModel):
    """Inline completion configuration."""

    provider: str | None = Field(
        default=None,
        description="Configured provider id used for completion; defaults to default_provider",
    )
    system_prompt: str = COMPLETION_SYSTEM_PROMPT
    max_retries: int = Field(default=1, ge=1, le=5)


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


def _load_yaml_config(config_dir: Path) -> dict:
    """Load configuration from YAML files.

    Loads config.yaml and optionally overlays config.local.yaml.
    """
    config = {}

    config_file = config_dir / "config.yaml"
    if config_file.exists():
        with open(config_file) as f:
            config = yaml.safe_load(f) or {}

    local_config_file = config_dir / "config.local.yaml"
    if local_config_file.exists():
        with open(local_config_file) as f:
            local_config = yaml.safe_load(f) or {}
            config = _deep_merge(config, local_config)

    return config


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class Settings(BaseSettings):
    """Application settings loaded from environment, .env, and config files."""

    model_config = SettingsConfigDict(
        env_prefix="NBCHAT_",
        env_nested_delimiter="__",
        env_file=Path.home() / "nbchat.env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    chat: ChatSettings = Field(default_factory=ChatSettings)
    completion: CompletionSettings = Field(default_factory=CompletionSettings)
    providers: list[ProviderConfig] = Field(default_factory=list)
    default_provider: str | None = None

    def __init__(self, config_dir: Path | None = None, **data):
        """Initialize settings, loading from YAML if config_dir provided."""
        if config_dir is not None:
            yaml_config = _load_yaml_config(config_dir)
            # Explicit data wins over YAML
            merged = _deep_merge(yaml_config, data)
            super().__init__(**merged)
        else:
            super().__init__(**data)

        if self.default_provider is None and self.providers:
            self.default_provider = self.providers[0].id

    @field_validator("providers")
    @classmethod
    def unique_provider_ids(cls, v: list[ProviderConfig]) -> list[ProviderConfig]:
        """Reject duplicate provider ids."""
        seen: set[str] = set()
        for provider in v:
            if provider.id in seen:
                raise ValueError(f"Duplicate provider id: '{provider.id}'")
            seen.add(provider.id)
        return v

    def validate_required(self) -> None:
        """Validate that cross-field settings are consistent.

        Raises:
            ValueError: If default_provider or completion.provider names an
                unknown provider.
        """
        ids = {provider.id for provider in self.providers}

        if self.default_provider is not None and self.default_provider not in ids:
            raise ValueError(
                f"default_provider '{self.default_provider}' is not a configured provider"
            )

        if self.completion.provider is not None and self.completion.provider not in ids:
            raise ValueError(
                f"completion.provider '{self.completion.provider}' is not a configured provider"
            )


@lru_cache
def get_settings(config_dir: Path | None = None) -> Settings:
    """Get cached settings instance.

    Args:
        config_dir: Optional path to config directory. If None, only environment
                   variables and .env file are used.

    Returns:
        Settings instance.
    """
    if config_dir is None:
        project_root = Path(__file__).parent.parent.parent
        default_config_dir = project_root / "config"
        if default_config_dir.exists():
            config_dir = default_config_dir

    return Settings(config_dir=config_dir)
