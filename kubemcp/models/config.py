"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ServerConfig:
    """Transport and listener configuration."""

    transport: str = "stdio"
    host: str = "0.0.0.0"
    port: int = 8443
    auth_token: str = ""
    cert_path: str = ""
    key_path: str = ""
    insecure: bool = False
    session_timeout_seconds: int = 300


@dataclass
class KubeConfig:
    """Kubernetes credential source configuration."""

    kubeconfig_path: str = ""
    in_cluster: bool = False


@dataclass
class LimitsConfig:
    """Bounds applied to individual tool calls."""

    request_timeout_seconds: float = 30.0


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"
    format: str = "json"


@dataclass
class PromptConfig:
    """Prompt rendering configuration."""

    language: str = ""


@dataclass
class KubeMCPConfig:
    """Top-level kubemcp configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    kube: KubeConfig = field(default_factory=KubeConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    log: LogConfig = field(default_factory=LogConfig)
    prompts: PromptConfig = field(default_factory=PromptConfig)


@dataclass
class ClientConfig:
    """Configuration for the bundled HTTP MCP client."""

    server_url: str = "https://localhost:8443/mcp"
    auth_token: str = ""
    insecure_skip_verify: bool = False
    user_agent: str = "kubemcp-client/0.1.0"
    timeout_seconds: float = 30.0
    headers: dict[str, str] = field(default_factory=dict)
