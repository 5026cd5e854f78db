"""
Configuration management for GigaChat-Agent

Uses pydantic-settings for environment variable parsing and validation.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0


def validate_temperature(value: float) -> float:
    """Raise ValueError unless value lies in the accepted sampling range."""
    if not MIN_TEMPERATURE <= value <= MAX_TEMPERATURE:
        raise ValueError(
            f"temperature must be between {MIN_TEMPERATURE} and {MAX_TEMPERATURE}, got {value}"
        )
    return value


class GigaChatConfig(BaseSettings):
    """Configuration for the GigaChat transport and its OAuth client."""

    model_config = SettingsConfigDict(extra="ignore")

    client_id: str = ""
    client_secret: str = ""
    scope: str = "GIGACHAT_API_PERS"
    token_url: str = "https://ngw.devices.sberbank.ru:9443/api/v2/oauth"
    api_url: str = "https://gigachat.devices.sberbank.ru/api/v1/chat/completions"
    model: str = "GigaChat"
    ca_bundle_path: str | None = None
    connect_timeout: float = 30.0
    request_timeout: float = 120.0
    max_tokens: int = 1024
    temperature: float = 0.87


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # Application
    app_name: str = "GigaChat-Agent"
    debug: bool = False
    log_level: str = "INFO"

    # GigaChat credentials and endpoints
    gigachat_client_id: str = Field(default="", description="OAuth client id")
    gigachat_client_secret: str = Field(default="", description="OAuth client secret")
    gigachat_scope: str = Field(default="GIGACHAT_API_PERS", description="OAuth product scope")
    gigachat_token_url: str = Field(
        default="https://ngw.devices.sberbank.ru:9443/api/v2/oauth",
        description="OAuth token endpoint",
    )
    gigachat_api_url: str = Field(
        default="https://gigachat.devices.sberbank.ru/api/v1/chat/completions",
        description="Chat completion endpoint",
    )
    gigachat_model: str = "GigaChat"
    ca_bundle_path: str | None = Field(default=None, description="Trusted root CA file (PEM)")

    # Transport
    connect_timeout: float = Field(default=30.0, description="Connect timeout in seconds")
    request_timeout: float = Field(default=120.0, description="Read/write timeout in seconds")

    # Sampling
    temperature: float = 0.87
    max_tokens: int = 1024

    # Conversation
    max_context_messages: int = Field(default=10, description="Messages kept before compression")
    prompts_dir: Path = Field(default=Path("prompts"), description="Directory for /file prompts")
    system_prompt_file: Path = Field(
        default=Path("prompts/system_prompt.txt"),
        description="System prompt loaded at startup if present",
    )

    # Tools
    tool_server_url: str = Field(default="http://localhost:8080", description="Tool server base URL")
    tool_timeout_seconds: float = Field(default=10.0, description="Per-invocation tool timeout")
    discover_remote_tools: bool = Field(default=False, description="Register tools from /tools/list")

    # Tool server
    tool_server_host: str = "0.0.0.0"
    tool_server_port: int = 8080
    tool_server_threads: int = Field(default=10, description="Worker threads for tool handlers")

    @field_validator("temperature")
    @classmethod
    def check_temperature(cls, v: float) -> float:
        return validate_temperature(v)

    @field_validator("max_context_messages")
    @classmethod
    def check_max_context_messages(cls, v: int) -> int:
        if v < 3:
            raise ValueError("max_context_messages must be at least 3")
        return v

    @property
    def has_credentials(self) -> bool:
        return bool(self.gigachat_client_id and self.gigachat_client_secret)

    def get_gigachat_config(self) -> GigaChatConfig:
        """Get transport configuration for the GigaChat client."""
        return GigaChatConfig(
            client_id=self.gigachat_client_id,
            client_secret=self.gigachat_client_secret,
            scope=self.gigachat_scope,
            token_url=self.gigachat_token_url,
            api_url=self.gigachat_api_url,
            model=self.gigachat_model,
            ca_bundle_path=self.ca_bundle_path,
            connect_timeout=self.connect_timeout,
            request_timeout=self.request_timeout,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
