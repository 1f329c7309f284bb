"""
Application settings and configuration management.

Uses Pydantic Settings for validation and environment variable support.
Environment variables are read once, when a settings object is created at
the composition root (the CLI, or ChatOrchestrator.from_settings). Nothing
below the composition root reads the environment.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_AGENCY_PORT = "5001"
DEFAULT_MEMORY_PORT = "6011"


def _build_url(protocol: str | None, domain: str, port: str, suffix: str = "") -> str:
    protocol = protocol or ("https" if port == "443" else "http")
    if port in ("80", "443"):
        return f"{protocol}://{domain}{suffix}"
    return f"{protocol}://{domain}:{port}{suffix}"


class AgencySettings(BaseSettings):
    """
    Agency completion service connection.

    Base URL resolution, highest priority first:
    1. `url` (LLM_AGENCY_URL), used as is
    2. `host` (LLM_AGENCY_HOST) as "domain[:port]"; without a port, 443 when
       the protocol is https, else 5001
    3. `domain` (default localhost) and `port` (default 5001)

    The protocol defaults to https on port 443 and http otherwise. Ports 80
    and 443 are left out of the URL.
    """

    url: str | None = Field(default=None, description="Complete base URL")
    host: str | None = Field(default=None, description="Domain with optional port, e.g. 'api.example.com:8080'")
    protocol: Literal["http", "https"] | None = Field(default=None, description="URL scheme")
    domain: str | None = Field(default=None, description="Server domain name")
    port: str | None = Field(default=None, description="Server port")
    url_path: str | None = Field(default=None, description="Path prefix for every request")
    key: SecretStr | None = Field(default=None, description="API key sent in the Authorization header")

    model_config = SettingsConfigDict(env_prefix="LLM_AGENCY_", extra="ignore")

    def base_url(self) -> str:
        if self.url:
            return self.url.rstrip("/")

        if self.host:
            domain, _, port = self.host.partition(":")
            if not port:
                port = "443" if self.protocol == "https" else DEFAULT_AGENCY_PORT
        else:
            domain = self.domain or "localhost"
            port = self.port or DEFAULT_AGENCY_PORT

        return _build_url(self.protocol, domain, port)


class LLMSettings(BaseSettings):
    """LLM request configuration."""

    backend: Literal["agency", "litellm"] = Field(
        default="agency",
        description="'agency' sends requests to the agency service; 'litellm' calls the "
                    "provider directly through LiteLLM.",
    )
    model: str = Field(
        default="gpt-4o-mini",
        description="Model name. For the agency backend the name prefix selects the service "
                    "endpoint (gpt/o1/o3, claude, llama3, deepseek, gemini). For LiteLLM use a "
                    "provider-prefixed string such as 'anthropic/claude-3-5-sonnet-20241022'.",
    )
    max_tokens: int = Field(default=1024, description="Maximum tokens in response (LiteLLM only)")
    temperature: float = Field(default=0.3, description="Sampling temperature (LiteLLM only)")
    api_key: str = Field(default="", description="Provider API key (LiteLLM only)")
    max_tool_rounds: int | None = Field(
        default=None,
        ge=0,
        description="Stop offering tools after this many tool rounds. None means no limit.",
    )

    model_config = SettingsConfigDict(env_prefix="LLM_", extra="ignore")


class MemorySettings(BaseSettings):
    """Memory service connection."""

    url: str | None = Field(default=None, description="Complete API base URL")
    domain: str = Field(default="localhost", description="Server domain name")
    port: str = Field(default=DEFAULT_MEMORY_PORT, description="Server port")
    protocol: Literal["http", "https"] | None = Field(default=None, description="URL scheme")
    token: SecretStr | None = Field(default=None, description="Authorization token")

    model_config = SettingsConfigDict(env_prefix="MEMORY_API_", extra="ignore")

    def base_url(self) -> str:
        if self.url:
            return self.url.rstrip("/")
        return _build_url(self.protocol, self.domain, self.port, suffix="/api")


class ToolSettings(BaseSettings):
    """External tool configuration."""

    mcp_command: str | None = Field(
        default=None,
        description="Command starting an MCP server over stdio, e.g. 'node'. "
                    "If set, the CLI offers the server's tools to the model.",
    )
    mcp_args: list[str] = Field(
        default_factory=list,
        description="Arguments for the MCP server command. Set via TOOL_MCP_ARGS='[\"server.js\"]'",
    )

    model_config = SettingsConfigDict(env_prefix="TOOL_", extra="ignore")


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    environment: Literal["development", "production"] = Field(
        default="development", description="Deployment environment"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_file: Path | None = Field(default=None, description="Log file path")

    # Sub-configurations
    agency: AgencySettings = Field(default_factory=AgencySettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    memory: MemorySettings = Field(default_factory=MemorySettings)
    tools: ToolSettings = Field(default_factory=ToolSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def load_settings(env_file: str | Path | None = None) -> Settings:
    """
    Load settings from file and environment.

    Args:
        env_file: Path to .env file (optional)

    Returns:
        Loaded settings instance
    """
    global _settings
    if env_file:
        _settings = Settings(_env_file=env_file)
    else:
        _settings = Settings()
    return _settings
