"""Configuration for the MSP API connection."""

import os
from dataclasses import dataclass
from typing import Mapping

ENV_DOMAIN = "FIREWALLA_MSP_DOMAIN"
ENV_API_KEY = "FIREWALLA_MSP_API_KEY"
ENV_TIMEOUT = "FIREWALLA_MSP_TIMEOUT"

DEFAULT_TIMEOUT = 30.0
API_VERSION_PATH = "/v2"


class ConfigError(Exception):
    """Required configuration is missing or invalid."""
    pass


@dataclass(frozen=True)
class MspConfig:
    domain: str
    api_key: str
    timeout: float = DEFAULT_TIMEOUT

    @property
    def base_url(self) -> str:
        return f"https://{self.domain}{API_VERSION_PATH}"


def _clean_domain(domain: str) -> str:
    domain = domain.strip()
    for scheme in ("https://", "http://"):
        if domain.lower().startswith(scheme):
            domain = domain[len(scheme):]
    return domain.rstrip("/")


def load_config(
    domain: str | None = None,
    api_key: str | None = None,
    timeout: float | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> MspConfig:
    """Build the config from explicit values, falling back to the environment."""
    env = os.environ if environ is None else environ

    domain = _clean_domain(domain or env.get(ENV_DOMAIN, ""))
    if not domain:
        raise ConfigError(f"{ENV_DOMAIN} environment variable is required")

    api_key = (api_key or env.get(ENV_API_KEY, "")).strip()
    if not api_key:
        raise ConfigError(f"{ENV_API_KEY} environment variable is required")

    raw_timeout = timeout if timeout is not None else env.get(ENV_TIMEOUT) or DEFAULT_TIMEOUT
    try:
        timeout_value = float(raw_timeout)
    except (TypeError, ValueError):
        raise ConfigError(f"{ENV_TIMEOUT} must be a number of seconds, got {raw_timeout!r}")
    if timeout_value <= 0:
        raise ConfigError(f"{ENV_TIMEOUT} must be positive, got {timeout_value}")

    return MspConfig(domain=domain, api_key=api_key, timeout=timeout_value)
