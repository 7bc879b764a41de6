"""hostdiff CLI entry point — `hostdiff` command group."""

from __future__ import annotations

import click

from hostdiff.cli.commands.diff import diff_cmd
from hostdiff.cli.commands.snapshots import history_cmd, hosts_cmd, upload_cmd


@click.group()
@click.version_option(package_name="hostdiff")
@click.option(
    "--api-url",
    default="http://localhost:8000",
    envvar="HOSTDIFF_API_URL",
    show_default=True,
    help="Base URL of the hostdiff API server",
)
@click.pass_context
def cli(ctx: click.Context, api_url: str) -> None:
    """hostdiff — track host scan snapshots and diff their attack surface.

    \b
    Quick start:
      hostdiff upload host_125.199.235.74_2025-10-16T12-00-00Z.json
      hostdiff history 125.199.235.74
      hostdiff diff <old-id> <new-id>

    API docs: http://localhost:8000/docs
    """
    ctx.ensure_object(dict)
    ctx.obj["api_url"] = api_url.rstrip("/")


# Register sub-commands
cli.add_command(upload_cmd)
cli.add_command(history_cmd)
cli.add_command(hosts_cmd)
cli.add_command(diff_cmd)


@cli.command("serve")
@click.option("--host", default="0.0.0.0", show_default=True, help="Bind host")
@click.option("--port", default=8000, show_default=True, help="Bind port")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload (dev mode)")
def serve(host: str, port: int, reload: bool) -> None:
    """Start the hostdiff API server."""
    import uvicorn

    uvicorn.run(
        "hostdiff.api.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    cli()
