"""Prometheus metrics exposed on the HTTP transport's /metrics endpoint."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

rpc_requests_total = Counter(
    "kubemcp_rpc_requests_total",
    "JSON-RPC requests handled, by method and outcome",
    ["method", "outcome"],
)

tool_calls_total = Counter(
    "kubemcp_tool_calls_total",
    "Tool invocations, by tool and outcome",
    ["tool", "outcome"],
)

tool_call_duration_seconds = Histogram(
    "kubemcp_tool_call_duration_seconds",
    "Wall time spent inside a tool handler",
    ["tool"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

http_sessions_active = Gauge(
    "kubemcp_http_sessions_active",
    "Live HTTP transport sessions",
)
