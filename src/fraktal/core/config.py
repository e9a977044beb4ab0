"""
Configuration management for fraktal.

Handles loading configuration from environment variables and validation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any

from fraktal.core.logging import parse_module_levels


def _get_env_var(name: str, default: str | None = None, required: bool = False) -> str | None:
    """Get environment variable with optional default."""
    value = os.environ.get(name, default)
    if required and not value:
        raise ValueError(f"Required environment variable {name} is not set")
    return value


def _default_ws_url(firefly_url: str) -> str:
    """Derive the WebSocket base URL from the FireFly HTTP URL."""
    if firefly_url.startswith("https://"):
        return "wss://" + firefly_url[len("https://"):]
    if firefly_url.startswith("http://"):
        return "ws://" + firefly_url[len("http://"):]
    return firefly_url


@dataclass(frozen=True)
class Config:
    """Library configuration."""

    firefly_url: str
    namespace: str = "default"
    ws_url: str | None = None
    fabconnect_url: str | None = None

    # Fabric deployment
    channel: str = "pm3"
    package_chaincode: str = "pm3package"
    role_chaincode: str = "pm3roleauth"

    # Timeouts (seconds)
    request_timeout: float = 30.0
    connect_timeout: float = 10.0  # event stream subscription during initialize

    # Event delivery: notification ids remembered for redelivery checks, 0 disables
    dedupe_window: int = 1024

    # Environment & Logging
    log_level: str = "INFO"
    log_levels: str = ""  # per-module overrides, "firefly.stream=DEBUG,events=WARNING"
    env: str = "development"

    def __post_init__(self) -> None:
        if not self.firefly_url:
            raise ValueError("firefly_url is required")
        if not self.namespace:
            raise ValueError("namespace is required")
        if self.dedupe_window < 0:
            raise ValueError("dedupe_window must not be negative")
        parse_module_levels(self.log_levels)
        # Frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "firefly_url", self.firefly_url.rstrip("/"))
        if self.ws_url is None:
            object.__setattr__(self, "ws_url", _default_ws_url(self.firefly_url))
        else:
            object.__setattr__(self, "ws_url", self.ws_url.rstrip("/"))

    @classmethod
    def from_env(cls, **overrides: Any) -> Config:
        """Load configuration from environment variables."""
        firefly_url = overrides.get("firefly_url") or _get_env_var(
            "FRAKTAL_FIREFLY_URL", required=True
        )
        namespace = overrides.get("namespace") or _get_env_var(
            "FRAKTAL_NAMESPACE", default="default"
        )
        ws_url = overrides.get("ws_url") or _get_env_var("FRAKTAL_FIREFLY_WS_URL")
        fabconnect_url = overrides.get("fabconnect_url") or _get_env_var(
            "FRAKTAL_FABCONNECT_URL"
        )

        channel = overrides.get("channel") or _get_env_var("FRAKTAL_CHANNEL", default="pm3")
        package_chaincode = overrides.get("package_chaincode") or _get_env_var(
            "FRAKTAL_PACKAGE_CHAINCODE", default="pm3package"
        )
        role_chaincode = overrides.get("role_chaincode") or _get_env_var(
            "FRAKTAL_ROLE_CHAINCODE", default="pm3roleauth"
        )

        log_level = overrides.get("log_level") or _get_env_var(
            "FRAKTAL_LOG_LEVEL", default="INFO"
        )
        log_levels = overrides.get("log_levels") or _get_env_var(
            "FRAKTAL_LOG_LEVELS", default=""
        )
        env = overrides.get("env") or _get_env_var("FRAKTAL_ENV", default="development")

        return cls(
            firefly_url=firefly_url,  # type: ignore
            namespace=namespace,  # type: ignore
            ws_url=ws_url,
            fabconnect_url=fabconnect_url,
            channel=channel,  # type: ignore
            package_chaincode=package_chaincode,  # type: ignore
            role_chaincode=role_chaincode,  # type: ignore
            request_timeout=overrides.get("request_timeout", cls.request_timeout),
            connect_timeout=overrides.get("connect_timeout", cls.connect_timeout),
            dedupe_window=overrides.get("dedupe_window", cls.dedupe_window),
            log_level=log_level,  # type: ignore
            log_levels=log_levels,  # type: ignore
            env=env,  # type: ignore
        )

    def with_updates(self, **updates: Any) -> Config:
        """Create a new Config with updated values."""
        current = {f.name: getattr(self, f.name) for f in fields(self)}
        # A new firefly_url should derive a new ws_url unless one is given
        if "firefly_url" in updates and "ws_url" not in updates:
            current["ws_url"] = None
        current.update(updates)
        return Config(**current)

    @property
    def api_base_url(self) -> str:
        """Namespace-scoped REST base URL."""
        return f"{self.firefly_url}/api/v1/namespaces/{self.namespace}"
