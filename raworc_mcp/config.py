import os
import json
from typing import Optional, List, Dict, Any, Literal
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from raworc_mcp.core.errors import ConfigError

DEFAULT_API_URL = "https://api.remoteagent.com/api/v0"
DEFAULT_CONFIG_FILE = "config.json"


class RaworcConfig(BaseModel):
    api_url: str = DEFAULT_API_URL
    auth_token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    default_space: str = "default"
    timeout_seconds: float = Field(30.0, gt=0)

    @field_validator("api_url")
    @classmethod
    def _check_api_url(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"api_url must be an http(s) URL, got {value!r}")
        return value

    @model_validator(mode="after")
    def _check_credentials(self) -> "RaworcConfig":
        if bool(self.username) != bool(self.password):
            raise ValueError("username and password must be supplied together")
        return self

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)


class ServerConfig(BaseModel):
    transport: Literal["stdio", "http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 8008
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.strip().upper() if isinstance(value, str) else value


class Config(BaseModel):
    raworc: RaworcConfig = RaworcConfig()
    allowed_origins: Optional[List[str]] = None
    server: ServerConfig = ServerConfig()

    @classmethod
    def load(cls, config_path: Optional[str] = None, environ=None) -> "Config":
        """Read the optional JSON config file, then apply environment overrides.

        Raises ConfigError when the file is unreadable or the result is invalid.
        """
        env = os.environ if environ is None else environ
        config_path = config_path or env.get("RAWORC_MCP_CONFIG") or DEFAULT_CONFIG_FILE

        data: Dict[str, Any] = {}
        if os.path.exists(config_path):
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"Config file {config_path} must contain a JSON object")
        elif config_path != DEFAULT_CONFIG_FILE:
            raise ConfigError(f"Config file not found: {config_path}")

        # Handle env var overrides
        raworc_data = dict(data.get("raworc") or {})
        _override(raworc_data, "api_url", env.get("RAWORC_API_URL"))
        _override(raworc_data, "auth_token", env.get("RAWORC_AUTH_TOKEN"))
        _override(raworc_data, "username", env.get("RAWORC_USERNAME"))
        _override(raworc_data, "password", env.get("RAWORC_PASSWORD"))
        _override(raworc_data, "default_space", env.get("RAWORC_DEFAULT_SPACE"))
        _override(raworc_data, "timeout_seconds", env.get("RAWORC_TIMEOUT"))

        server_data = dict(data.get("server") or {})
        _override(server_data, "transport", env.get("RAWORC_MCP_TRANSPORT"))
        _override(server_data, "host", env.get("RAWORC_MCP_HOST"))
        _override(server_data, "port", env.get("RAWORC_MCP_PORT"))
        _override(server_data, "log_level", env.get("RAWORC_MCP_LOG_LEVEL"))

        data["raworc"] = raworc_data
        data["server"] = server_data
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    def mask_secrets(self) -> Dict[str, Any]:
        """Return a dict representation with secrets masked for logging."""
        d = self.model_dump()
        for key in ("auth_token", "password"):
            if d.get("raworc", {}).get(key):
                d["raworc"][key] = "***"
        return d


def _override(section: Dict[str, Any], key: str, value: Optional[str]) -> None:
    if value is not None and value != "":
        section[key] = value
