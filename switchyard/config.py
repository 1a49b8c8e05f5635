"""
Config system - layered settings with per-field coercion.

Merge order (later overrides earlier):
1. Defaults declared on ``Settings``
2. ``.env`` file (only ``SWITCHYARD_`` keys)
3. Environment variables (``SWITCHYARD_`` prefix)
4. Manual overrides
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import dotenv_values

from .faults import ConfigFault, ConfigMissingFault


ENV_PREFIX = "SWITCHYARD_"

# Flags set by the local emulators, read without prefix
_LOCAL_FLAGS = ("AWS_SAM_LOCAL", "IS_LOCAL")


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings.

    Attributes:
        environment: Deployment environment name (dev, staging, prod, ...)
        log_level: Level for the ``switchyard`` logger
        local: Running outside the hosted runtime
        jwt_secret: HS256 signing secret; no authenticator when empty
        jwt_expires_in: Access-token lifetime in seconds
        cors_allow_origin: ``Access-Control-Allow-Origin`` value
    """
    environment: str = "dev"
    log_level: str = "WARNING"
    local: bool = False
    jwt_secret: Optional[str] = None
    jwt_expires_in: int = 86400
    cors_allow_origin: str = "*"

    @property
    def is_local(self) -> bool:
        if self.local:
            return True
        return any(_parse_bool(os.environ.get(flag, "")) for flag in _LOCAL_FLAGS)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("prod", "production")

    def response_headers(self) -> Dict[str, str]:
        """Headers every response carries on top of the CORS defaults."""
        if self.cors_allow_origin == "*":
            return {}
        return {"Access-Control-Allow-Origin": self.cors_allow_origin}

    def validate(self) -> "Settings":
        if self.is_production and not self.is_local and not self.jwt_secret:
            raise ConfigMissingFault(f"{ENV_PREFIX}JWT_SECRET")
        return self


def _parse_bool(value: Any) -> bool:
    """Interpret "true"/"yes"/"1" (any case) as True."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "yes", "1")


class ConfigLoader:
    """
    Loads and merges settings from multiple sources.

    Example:
        settings = ConfigLoader.load(env_file=".env")
    """

    def __init__(self, env_prefix: str = ENV_PREFIX):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        env_file: Optional[str] = None,
        overrides: Optional[Mapping[str, Any]] = None,
        env_prefix: str = ENV_PREFIX,
        environ: Optional[Mapping[str, str]] = None,
    ) -> Settings:
        loader = cls(env_prefix=env_prefix)
        if env_file:
            loader._load_env_file(env_file)
        loader._load_from_env(os.environ if environ is None else environ)
        if overrides:
            loader.config_data.update(overrides)
        return loader.build()

    def _load_env_file(self, path: str) -> None:
        if not Path(path).exists():
            return
        self._merge_prefixed(dotenv_values(path))

    def _load_from_env(self, environ: Mapping[str, str]) -> None:
        self._merge_prefixed(environ)

    def _merge_prefixed(self, values: Mapping[str, Optional[str]]) -> None:
        for key, value in values.items():
            if key.startswith(self.env_prefix) and value is not None:
                self.config_data[key[len(self.env_prefix):].lower()] = value

    def build(self) -> Settings:
        """Instantiate ``Settings`` from the merged data, coercing values per field."""
        known = {f.name: f for f in fields(Settings)}
        kwargs: Dict[str, Any] = {}
        for key, raw in self.config_data.items():
            if key not in known:
                continue
            if key == "jwt_expires_in":
                try:
                    value = int(raw)
                except (TypeError, ValueError):
                    raise ConfigFault(
                        code="CONFIG_INVALID",
                        message=f"{self.env_prefix}JWT_EXPIRES_IN must be an integer, got {raw!r}",
                        metadata={"key": key},
                    ) from None
            elif key == "local":
                value = _parse_bool(raw)
            else:
                value = None if raw is None else str(raw)
            kwargs[key] = value
        return Settings(**kwargs).validate()


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Process-wide settings, loaded once from ``.env`` and the environment."""
    global _settings
    if _settings is None:
        _settings = ConfigLoader.load(env_file=os.environ.get(f"{ENV_PREFIX}ENV_FILE", ".env"))
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
