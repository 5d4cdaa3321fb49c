"""Run configuration resolved from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

DEFAULT_REGISTRY_URL = "https://static.crates.io/crates"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ExtractorConfig:
    safe_only: bool = True
    strict_parse: bool = False
    cleanup: bool = True
    download_missing: bool = False
    registry_url: str = DEFAULT_REGISTRY_URL
    timeout_seconds: float = 60.0

    def with_overrides(self, **overrides) -> "ExtractorConfig":
        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **values)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


def resolve_config() -> ExtractorConfig:
    return ExtractorConfig(
        safe_only=_env_flag("COMMENTMINE_SAFE_ONLY", True),
        strict_parse=_env_flag("COMMENTMINE_STRICT_PARSE", False),
        cleanup=_env_flag("COMMENTMINE_CLEANUP", True),
        download_missing=_env_flag("COMMENTMINE_DOWNLOAD_MISSING", False),
        registry_url=os.getenv("COMMENTMINE_REGISTRY_URL") or DEFAULT_REGISTRY_URL,
        timeout_seconds=float(os.getenv("COMMENTMINE_TIMEOUT_SECONDS", "60")),
    )
