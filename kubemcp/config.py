"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from kubemcp.models.config import (
    ClientConfig,
    KubeConfig,
    KubeMCPConfig,
    LimitsConfig,
    LogConfig,
    PromptConfig,
    ServerConfig,
)

_TRANSPORTS = ("stdio", "http")
_LOG_FORMATS = ("json", "console")


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBEMCP_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float, min_val: float | None = None) -> float:
    val = float(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    return val


def _validate_transport(value: str) -> str:
    if value.lower() not in _TRANSPORTS:
        raise ValueError(f"Invalid transport: {value}. Must be one of {_TRANSPORTS}")
    return value.lower()


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_log_format(value: str) -> str:
    if value.lower() not in _LOG_FORMATS:
        raise ValueError(f"Invalid log format: {value}. Must be one of {_LOG_FORMATS}")
    return value.lower()


def default_kubeconfig_path() -> str:
    """Return ``$KUBECONFIG`` if set, else ``~/.kube/config``."""
    return os.environ.get("KUBECONFIG") or os.path.join(os.path.expanduser("~"), ".kube", "config")


def load_config() -> KubeMCPConfig:
    """Load configuration from KUBEMCP_* environment variables."""
    return KubeMCPConfig(
        server=ServerConfig(
            transport=_validate_transport(_env("TRANSPORT", "stdio")),
            host=_env("HOST", "0.0.0.0"),
            port=_env_int("PORT", 8443, min_val=1, max_val=65535),
            auth_token=_env("TOKEN", ""),
            cert_path=_env("CERT", ""),
            key_path=_env("KEY", ""),
            insecure=_env_bool("INSECURE", False),
            session_timeout_seconds=_env_int("SESSION_TIMEOUT", 300, min_val=10),
        ),
        kube=KubeConfig(
            kubeconfig_path=_env("KUBECONFIG", "") or default_kubeconfig_path(),
            in_cluster=_env_bool("IN_CLUSTER", False),
        ),
        limits=LimitsConfig(
            request_timeout_seconds=_env_float("REQUEST_TIMEOUT", 30.0, min_val=0.0),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
            format=_validate_log_format(_env("LOG_FORMAT", "json")),
        ),
        prompts=PromptConfig(
            language=_env("PROMPT_LANGUAGE", ""),
        ),
    )


def validate_config(config: KubeMCPConfig) -> None:
    """Reject combinations that cannot be served.

    Raises:
        ValueError: HTTP without a token, or HTTPS without both cert and key.
    """
    server = config.server
    if server.transport != "http":
        return
    if not server.auth_token:
        raise ValueError("An auth token is required for the http transport")
    if not server.insecure and not (server.cert_path and server.key_path):
        raise ValueError("Both cert and key are required for HTTPS (use insecure mode for plain HTTP)")


def load_client_config() -> ClientConfig:
    """Load the bundled client's configuration from KUBEMCP_CLIENT_* variables.

    Raises:
        ValueError: when no token is configured.
    """
    token = _env("CLIENT_TOKEN", "")
    if not token:
        raise ValueError("KUBEMCP_CLIENT_TOKEN is required")
    return ClientConfig(
        server_url=_env("CLIENT_SERVER", "https://localhost:8443/mcp"),
        auth_token=token,
        insecure_skip_verify=_env_bool("CLIENT_INSECURE_SKIP_VERIFY", False),
        user_agent=_env("CLIENT_USER_AGENT", "kubemcp-client/0.1.0"),
        timeout_seconds=_env_float("CLIENT_TIMEOUT", 30.0, min_val=1.0),
    )
