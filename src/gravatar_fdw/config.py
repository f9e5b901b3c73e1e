"""Connector option handling."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from .errors import ConfigError, SecretError
from .models import SecretVault

VERSION = "0.1.0"
HOST_VERSION_REQUIREMENT = "^0.1.0"
DEFAULT_API_URL = "https://api.gravatar.com/v3/profiles"
DEFAULT_USER_AGENT = f"gravatar-fdw/{VERSION}"
DEFAULT_REQUEST_TIMEOUT = 15.0
PROFILES_OBJECT = "profiles"

AUTH_DIRECT = "api_key"
AUTH_VAULT = "vault"


@dataclass(frozen=True)
class ConnectorConfig:
    """Resolved server-level settings shared by every scan."""

    api_url: str = DEFAULT_API_URL
    headers: tuple[tuple[str, str], ...] = ()
    auth_source: str | None = None

    @property
    def using_api_key(self) -> bool:
        return any(name.lower() == "authorization" for name, _ in self.headers)


def _bearer(token: str) -> tuple[str, str]:
    return ("authorization", f"Bearer {token}")


def load_server_config(
    options: Mapping[str, str],
    *,
    vault: SecretVault,
    user_agent: str = DEFAULT_USER_AGENT,
    logger: logging.Logger,
) -> ConnectorConfig:
    """Build a ConnectorConfig from server options, resolving vault secrets."""
    api_url = options.get("api_url") or DEFAULT_API_URL
    headers: list[tuple[str, str]] = [
        ("user-agent", user_agent),
        ("accept", "application/json"),
    ]
    auth_source: str | None = None

    api_key = options.get("api_key")
    api_key_id = options.get("api_key_id")
    if api_key is not None:
        headers.append(_bearer(api_key))
        auth_source = AUTH_DIRECT
        logger.info("Gravatar FDW initialized with direct API key")
    elif api_key_id is not None:
        try:
            secret = vault.resolve_secret(api_key_id)
        except SecretError as exc:
            raise ConfigError(
                f"Failed to retrieve API key from Vault using ID: {api_key_id}"
            ) from exc
        if not secret:
            raise ConfigError(f"Failed to retrieve API key from Vault using ID: {api_key_id}")
        headers.append(_bearer(secret))
        auth_source = AUTH_VAULT
        logger.info("Gravatar FDW initialized with API key from Vault")
    else:
        logger.info("Gravatar FDW initialized without API key (public access only)")

    logger.info("Gravatar FDW initialized with base URL: %s", api_url)
    return ConnectorConfig(api_url=api_url, headers=tuple(headers), auth_source=auth_source)


def resolve_table_name(options: Mapping[str, str]) -> str:
    """Return the requested table object, rejecting anything but profiles."""
    table = options.get("table", PROFILES_OBJECT)
    if table != PROFILES_OBJECT:
        raise ConfigError(f"Unsupported table '{table}'. Only '{PROFILES_OBJECT}' is supported.")
    return table
