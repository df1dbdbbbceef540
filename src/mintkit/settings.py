"""Settings module with unified configuration precedence: INIT > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import DEFAULT_RPC_URLS

load_dotenv()

SECRET_FIELDS = frozenset({"private_key"})


class TomlConfigSource(PydanticBaseSettingsSource):
    """Reads settings from a TOML file (top-level or under a ``[mintkit]`` table)."""

    def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
        super().__init__(settings_cls)
        self._path = path

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return None, "", False

    def _resolve_path(self) -> Path | None:
        if self._path:
            return self._path
        local_config = Path("mintkit.toml")
        user_config = Path.home() / ".config" / "mintkit" / "config.toml"
        if local_config.exists():
            return local_config
        if user_config.exists():
            return user_config
        return None

    def __call__(self) -> dict[str, Any]:
        path = self._resolve_path()
        if path is None or not path.exists():
            return {}

        with path.open("rb") as f:
            data = tomllib.load(f)
        body = data.get("mintkit", data)
        if not isinstance(body, dict):
            return {}

        for key in SECRET_FIELDS:
            if key in body:
                raise ValueError(
                    f"Security violation: '{key}' found in TOML config file. "
                    f"Secrets must only be provided via environment variables or CLI flags."
                )

        # TOML tables cannot have integer keys; accept "8453" = [...] and coerce
        rpc_urls = body.get("rpc_urls")
        if isinstance(rpc_urls, dict):
            body["rpc_urls"] = {int(k): v for k, v in rpc_urls.items()}

        return body


class ClientSettings(BaseSettings):
    """Single source of truth for client configuration. Values may come from:
    - init kwargs (CLI flags or host application)
    - ENV / .env (prefixed with MINTKIT_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- RPC ---
    rpc_urls: dict[int, list[str]] = Field(default_factory=dict)
    use_default_rpcs: bool = True
    rpc_timeout: float = Field(default=15.0, gt=0)

    # --- purchase execution ---
    confirmations: int = Field(default=1, ge=1)
    gas_buffer_multiplier: float = Field(
        default=0.0,
        ge=0,
        description="Extra headroom applied to gas estimates (0.25 = +25%).",
    )
    confirmation_poll_interval: float = Field(default=2.0, gt=0)
    confirmation_timeout: float = Field(default=300.0, gt=0)

    # --- price rates ---
    price_rate_timeout: float = Field(default=5.0, gt=0)
    price_rate_cache_ttl: float = Field(default=60.0, ge=0)
    coinbase_api_url: str = "https://api.coinbase.com/v2"
    coingecko_api_url: str = "https://api.coingecko.com/api/v3"

    # --- catalog ---
    catalog_api_url: str = "https://apps.api.manifoldxyz.dev/public"
    catalog_timeout: float = Field(default=10.0, gt=0)

    # --- signing ---
    private_key: SecretStr | None = None

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="MINTKIT_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("private_key", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("rpc_urls", mode="before")
    @classmethod
    def normalize_rpc_urls(cls, v: Any) -> Any:
        """Accept a single URL per network as shorthand for a one-item list."""
        if isinstance(v, dict):
            return {k: [url] if isinstance(url, str) else url for k, url in v.items()}
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: INIT > ENV > FILE."""
        env_cfg = os.environ.get("MINTKIT_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSource(settings_cls, cfg_path),
            file_secret_settings,
        )

    def rpc_urls_for(self, network_id: int) -> list[str]:
        """Configured RPC URLs for a network, in priority order.

        Falls back to the public default endpoint when none is configured and
        ``use_default_rpcs`` is enabled.
        """
        urls = list(self.rpc_urls.get(network_id, []))
        if not urls and self.use_default_rpcs and network_id in DEFAULT_RPC_URLS:
            urls.append(DEFAULT_RPC_URLS[network_id])
        return urls

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with secrets redacted."""
        data = self.model_dump()
        for key in SECRET_FIELDS:
            if data.get(key) is not None:
                data[key] = "***redacted***"
        return data
