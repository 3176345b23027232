# apiprobe/config.py
"""
YAML run configuration.

Layout::

    api_endpoints:
      - url: https://api.example.com/users/1
        method: GET
        body: '{"name": "value"}'
    auth:
      username: admin
      password: secret
      bearer_token: ...          # optional, replaces basic auth
      api_key: ...               # optional
      api_key_header: X-API-Key
    injection_payloads: ["' OR '1'='1"]
    xss_payloads: [...]          # defaults applied when empty
    nosql_payloads: [...]        # defaults applied when empty
    enable_nosql: false
    rate_limiting:
      requests_per_second: 10
      max_concurrent_requests: 5
    headers: {X-Custom: value}
    request_timeout: 10

Values from the environment (or a ``.env`` file) override the file:
APIPROBE_USERNAME, APIPROBE_PASSWORD, APIPROBE_BEARER_TOKEN, APIPROBE_RPS,
APIPROBE_MAX_IN_FLIGHT.
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from .models import (
    DEFAULT_NOSQL_PAYLOADS,
    DEFAULT_XSS_PAYLOADS,
    AdmissionConfig,
    Credentials,
    Endpoint,
    PayloadSet,
    RunConfig,
)

load_dotenv()
logger = logging.getLogger(__name__)


class ConfigError(Exception):
    pass


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def auth_headers_from(auth: Dict[str, Any]) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    token = os.getenv("APIPROBE_BEARER_TOKEN") or auth.get("bearer_token")
    if token:
        headers["Authorization"] = f"Bearer {token}"
    api_key = auth.get("api_key")
    if api_key:
        headers[auth.get("api_key_header") or "X-API-Key"] = str(api_key)
    return headers


def build_run_config(data: Dict[str, Any]) -> RunConfig:
    """Turn a parsed configuration mapping into a validated RunConfig."""
    if not isinstance(data, dict):
        raise ConfigError("configuration must be a mapping")

    endpoints = data.get("api_endpoints") or []
    if not endpoints:
        raise ConfigError("at least one API endpoint is required")
    injection = data.get("injection_payloads") or []
    if not injection:
        raise ConfigError("at least one injection payload is required")

    auth = data.get("auth") or {}
    rate = data.get("rate_limiting") or {}
    rps = _env_int("APIPROBE_RPS")
    in_flight = _env_int("APIPROBE_MAX_IN_FLIGHT")

    try:
        parsed = [Endpoint(**e) for e in endpoints]
        config = RunConfig(
            endpoints=parsed,
            credentials=Credentials(
                username=os.getenv("APIPROBE_USERNAME") or auth.get("username") or "",
                password=os.getenv("APIPROBE_PASSWORD") or auth.get("password") or "",
            ),
            payloads=PayloadSet(
                sql=list(injection),
                xss=list(data.get("xss_payloads") or DEFAULT_XSS_PAYLOADS),
                nosql=list(data.get("nosql_payloads") or DEFAULT_NOSQL_PAYLOADS),
            ),
            rate_limiting=AdmissionConfig(
                requests_per_second=rps if rps is not None else int(rate.get("requests_per_second") or 0),
                max_concurrent_requests=in_flight if in_flight is not None
                else int(rate.get("max_concurrent_requests") or 0),
            ),
            headers={str(k): str(v) for k, v in (data.get("headers") or {}).items()},
            auth_headers=auth_headers_from(auth),
            enable_nosql=bool(data.get("enable_nosql", False)),
            request_timeout=float(data.get("request_timeout") or 10.0),
        )
    except (ValidationError, TypeError, ValueError) as e:
        raise ConfigError(f"configuration validation failed: {e}") from e

    if config.rate_limiting.requests_per_second <= 0:
        config.rate_limiting.requests_per_second = 10
    if config.rate_limiting.max_concurrent_requests <= 0:
        config.rate_limiting.max_concurrent_requests = 5
    return config


def load_config(path: Union[str, Path]) -> RunConfig:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"configuration file not found: {p}")
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse {p}: {e}") from e
    config = build_run_config(data or {})
    logger.info("Loaded configuration from %s: %d endpoints", p, len(config.endpoints))
    return config
