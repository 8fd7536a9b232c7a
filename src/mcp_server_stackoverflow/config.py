"""Configuration management using Pydantic settings with layered config files."""

import json
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

# --- Paths ---

APP_NAME = "mcp-server-stackoverflow"
WORKSPACE_CONFIG_NAME = ".mcp-stackoverflow.json"

# Search proxy used when no team proxy is configured. Must end with "/".
DEFAULT_PROXY_URL = "http://127.0.0.1:3000/"


def get_config_dir() -> Path:
    """Get the configuration directory (e.g. ~/.config/mcp-server-stackoverflow)."""
    if os.name == "nt":
        base = Path(os.environ.get("APPDATA", Path.home() / ".config")).expanduser()
    else:
        base = Path("~/.config").expanduser()

    return base / APP_NAME


def get_user_config_file() -> Path:
    return get_config_dir() / "config.json"


def load_config_file(path: Path) -> dict[str, Any]:
    """Load settings from a JSON config file.

    A missing or blank file is an empty config. A file that exists but is not
    a JSON object raises ConfigError.
    """
    if not path.exists():
        return {}

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e
    if not text.strip():
        return {}

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a JSON object in {path}, got {type(data).__name__}")
    return data


def merge_config(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``overlay`` into a copy of ``base``; overlay wins on conflicts."""
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


# Standard environment variable names for API keys (industry convention)
# For providers with multiple common env var names, use a list (first match wins)
STANDARD_ENV_VAR_NAMES: dict[str, str | list[str]] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": ["GEMINI_API_KEY", "GOOGLE_API_KEY"],  # GEMINI_API_KEY takes priority
    "groq": "GROQ_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}

# Providers that don't require an API key.
# "proxy" authenticates with the access token carried in ProxyInfo.
NO_KEY_PROVIDERS = frozenset({"ollama", "proxy"})

ProviderType = Literal[
    "openai",
    "anthropic",
    "google",
    "groq",
    "deepseek",
    "openrouter",
    "ollama",
    "proxy",
]


@dataclass(frozen=True)
class ProxyInfo:
    """Connection details handed to every proxy-backed provider."""

    proxy_url: str
    workspace_id: str | None = None
    access_token: str | None = None


class LLMSettings(BaseSettings):
    """LLM provider configuration."""

    model_config = SettingsConfigDict(env_prefix="MCP_LLM_")

    provider: ProviderType = Field(default="openai")
    model_name: str = Field(default="gpt-4o-mini")
    api_key: Optional[SecretStr] = Field(default=None, description="Generic API key override (highest priority)")
    base_url: Optional[str] = Field(default=None, description="Custom base URL for OpenAI-compatible APIs")
    context_length: int = Field(default=8192, gt=0, description="Context window of the model, in tokens")

    # Filled in by load_config() when provider == "proxy"; never read from env or files.
    proxy_info: Optional[ProxyInfo] = Field(default=None, exclude=True)

    def get_api_key_for_provider(self) -> Optional[str]:
        """Resolve API key with priority: generic > standard > MCP-prefixed.

        Priority order:
        1. MCP_LLM_API_KEY (generic override, applies to any provider)
        2. <PROVIDER>_API_KEY (standard name, e.g., OPENAI_API_KEY, GEMINI_API_KEY)
        3. MCP_LLM_<PROVIDER>_API_KEY (MCP-prefixed fallback)

        Returns:
            The resolved API key or None if not found.
        """
        if self.api_key:
            return self.api_key.get_secret_value()

        standard_vars = STANDARD_ENV_VAR_NAMES.get(self.provider)
        if standard_vars:
            if isinstance(standard_vars, str):
                standard_vars = [standard_vars]
            for var_name in standard_vars:
                key = os.environ.get(var_name)
                if key:
                    return key

        mcp_var = f"MCP_LLM_{self.provider.upper()}_API_KEY"
        return os.environ.get(mcp_var)


class SearchSettings(BaseSettings):
    """Search proxy and scraping configuration."""

    model_config = SettingsConfigDict(env_prefix="MCP_SEARCH_")

    use_default_proxy: bool = Field(default=True, description="Use the default search proxy instead of proxy_url")
    proxy_url: Optional[str] = Field(default=None, description="Team search proxy base URL")
    request_timeout: float = Field(default=30.0, gt=0, description="Timeout per HTTP request in seconds")
    max_sources: int = Field(default=3, ge=1, description="Maximum number of answers fed to the model")


TransportType = Literal["stdio", "streamable-http", "sse"]


class ServerSettings(BaseSettings):
    """Server configuration."""

    model_config = SettingsConfigDict(env_prefix="MCP_SERVER_")

    logging_level: str = Field(default="INFO")
    transport: TransportType = Field(default="streamable-http", description="MCP transport: stdio, streamable-http, or sse")
    host: str = Field(default="127.0.0.1", description="Host for HTTP transports")
    port: int = Field(default=8384, description="Port for HTTP transports")


class AppSettings(BaseSettings):
    """Root application settings.

    Layers: workspace config file > user config file > environment > defaults.
    """

    model_config = SettingsConfigDict(env_prefix="MCP_", extra="ignore")

    llm: LLMSettings = Field(default_factory=LLMSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)


@dataclass
class ConfigResult:
    """Outcome of load_config().

    ``config`` is None only when loading was interrupted by invalid settings.
    """

    config: AppSettings | None
    errors: list[str] = field(default_factory=list)
    config_load_interrupted: bool = False
    proxy_info: ProxyInfo | None = None


def resolve_proxy_url(search: SearchSettings) -> str:
    """Pick the search proxy base URL and normalise it to end with a slash."""
    if not search.use_default_proxy and search.proxy_url:
        url = search.proxy_url
    else:
        url = DEFAULT_PROXY_URL
    if not url.endswith("/"):
        url += "/"
    return url


def inject_proxy_info(config: AppSettings, info: ProxyInfo) -> AppSettings:
    """Pass ProxyInfo to the providers that route through the proxy."""
    if config.llm.provider == "proxy":
        config.llm.proxy_info = info
    return config


def load_config(
    workspace_dir: Path | None = None,
    workspace_id: str | None = None,
    access_token: str | None = None,
) -> ConfigResult:
    """Load user and workspace config files, validate them and wire up proxy info.

    Args:
        workspace_dir: Directory that may contain a workspace config file.
        workspace_id: Identifier forwarded to proxy-backed providers.
        access_token: Token forwarded to proxy-backed providers.

    Returns:
        ConfigResult with the merged settings and any non-fatal errors.
    """
    errors: list[str] = []

    try:
        file_data = load_config_file(get_user_config_file())
    except ConfigError as e:
        logger.warning(f"Failed to load user config: {e}")
        errors.append(str(e))
        file_data = {}

    if workspace_dir is not None:
        try:
            workspace_data = load_config_file(Path(workspace_dir) / WORKSPACE_CONFIG_NAME)
        except ConfigError as e:
            logger.warning(f"Failed to load workspace config: {e}")
            errors.append(str(e))
        else:
            file_data = merge_config(file_data, workspace_data)

    try:
        config = AppSettings(**file_data)
    except ValidationError as e:
        errors.append(str(e))
        return ConfigResult(config=None, errors=errors, config_load_interrupted=True)

    info = ProxyInfo(
        proxy_url=resolve_proxy_url(config.search),
        workspace_id=workspace_id,
        access_token=access_token,
    )
    config = inject_proxy_info(config, info)
    return ConfigResult(config=config, errors=errors, proxy_info=info)


@lru_cache(maxsize=1)
def get_config() -> ConfigResult:
    """Load configuration once for the current working directory."""
    return load_config(workspace_dir=Path.cwd(), access_token=os.environ.get("MCP_PROXY_ACCESS_TOKEN"))


def get_settings() -> AppSettings:
    """Return the loaded settings, raising ConfigError if loading was interrupted."""
    result = get_config()
    if result.config is None:
        raise ConfigError("; ".join(result.errors) or "Configuration could not be loaded")
    return result.config
