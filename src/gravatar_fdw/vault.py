"""Secret vault backed by environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping

ENV_PREFIX = "GRAVATAR_FDW_SECRET_"


def env_name_for(secret_id: str) -> str:
    sanitized = secret_id.upper().replace("/", "_").replace("-", "_").replace(".", "_")
    return f"{ENV_PREFIX}{sanitized}"


class EnvSecretVault:
    """Resolve secret ids from ``GRAVATAR_FDW_SECRET_<ID>`` variables."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    def resolve_secret(self, secret_id: str) -> str:
        return self._environ.get(env_name_for(secret_id), "").strip()
