"""Click commands: ``kubemcp serve`` and the HTTP client helpers.

Flags override the corresponding KUBEMCP_* environment variables.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import click

from kubemcp.client import MCPClientError, MCPHttpClient, decode_result
from kubemcp.config import load_client_config, load_config


@click.group()
@click.version_option(package_name="kubemcp")
def cli() -> None:
    """Read-only Kubernetes access for AI assistants over MCP."""


@cli.command()
@click.option("--transport", type=click.Choice(["stdio", "http"]), default=None, help="Transport to serve.")
@click.option("--host", default=None, help="Listen address for the http transport.")
@click.option("--port", "-p", type=int, default=None, help="Listen port for the http transport (default 8443).")
@click.option("--token", "-t", default=None, help="Bearer token required by the http transport.")
@click.option("--cert", "-c", default=None, type=click.Path(), help="TLS certificate file.")
@click.option("--key", "-k", default=None, type=click.Path(), help="TLS private key file.")
@click.option("--insecure", "-i", is_flag=True, default=None, help="Serve plain HTTP instead of HTTPS.")
@click.option("--kubeconfig", default=None, type=click.Path(), help="Path to kubeconfig.")
@click.option("--in-cluster", is_flag=True, default=None, help="Use the pod's service account.")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default=None,
    help="Log level (logs go to stderr).",
)
def serve(
    transport: str | None,
    host: str | None,
    port: int | None,
    token: str | None,
    cert: str | None,
    key: str | None,
    insecure: bool | None,
    kubeconfig: str | None,
    in_cluster: bool | None,
    log_level: str | None,
) -> None:
    """Run the MCP server."""
    from kubemcp.app import main

    try:
        config = load_config()
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    overrides: dict[str, Any] = {
        "transport": transport,
        "host": host,
        "port": port,
        "auth_token": token,
        "cert_path": cert,
        "key_path": key,
        "insecure": insecure,
    }
    for attr, value in overrides.items():
        if value is not None:
            setattr(config.server, attr, value)
    if kubeconfig is not None:
        config.kube.kubeconfig_path = kubeconfig
    if in_cluster is not None:
        config.kube.in_cluster = in_cluster
    if log_level is not None:
        config.log.level = log_level

    asyncio.run(main(config))


def _parse_arguments(pairs: tuple[str, ...]) -> dict[str, Any]:
    """Turn ``key=value`` pairs into tool arguments; JSON values are decoded."""
    arguments: dict[str, Any] = {}
    for pair in pairs:
        name, sep, raw = pair.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected key=value, got {pair!r}")
        try:
            arguments[name] = json.loads(raw)
        except json.JSONDecodeError:
            arguments[name] = raw
    return arguments


async def _with_client(action: Any) -> Any:
    config = load_client_config()
    async with MCPHttpClient(config) as client:
        return await action(client)


@cli.command()
def tools() -> None:
    """List the tools a running server offers."""

    async def _list(client: MCPHttpClient) -> list[dict[str, Any]]:
        return await client.list_tools()

    try:
        listed = asyncio.run(_with_client(_list))
    except (MCPClientError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    for tool in listed:
        click.echo(f"{tool['name']}: {tool.get('description', '')}")


@cli.command()
@click.argument("tool")
@click.argument("arguments", nargs=-1)
def call(tool: str, arguments: tuple[str, ...]) -> None:
    """Call TOOL with key=value ARGUMENTS and print its output."""
    args = _parse_arguments(arguments)

    async def _call(client: MCPHttpClient) -> Any:
        return decode_result(await client.call_tool(tool, args))

    try:
        output = asyncio.run(_with_client(_call))
    except (MCPClientError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    if isinstance(output, dict):
        for value in output.values():
            click.echo(value if isinstance(value, str) else json.dumps(value, indent=2))
    else:
        click.echo(output)
