"""CLI commands for uploading snapshots and browsing host history."""

from __future__ import annotations

from pathlib import Path

import click

from hostdiff.cli.output import console, fmt_date, history_table, hosts_table


def error_message(response) -> str:
    """Render an API error body as ``Kind: detail``."""
    try:
        body = response.json()
    except ValueError:
        return f"{response.status_code}: {response.text}"
    kind = body.get("kind") or str(response.status_code)
    return f"{kind}: {body.get('detail')}"


@click.command("upload")
@click.argument(
    "files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.pass_context
def upload_cmd(ctx: click.Context, files: tuple[Path, ...]) -> None:
    """Upload one or more JSON scan snapshots.

    Duplicates and invalid files are reported and skipped; the command exits
    non-zero if any file was not stored.
    """
    import httpx

    api_url: str = ctx.obj["api_url"]
    failures = 0
    for path in files:
        try:
            with path.open("rb") as fh:
                r = httpx.post(
                    f"{api_url}/api/v1/snapshots",
                    files={"file": (path.name, fh, "application/json")},
                    timeout=30,
                )
        except httpx.ConnectError:
            console.print(f"[red]Cannot connect to API at {api_url}.[/red]")
            raise SystemExit(1)

        if r.status_code == 201:
            s = r.json()
            console.print(
                f"[green]stored[/green]  {path.name}  "
                f"[bold]{s['ip_address']}[/bold] @ {fmt_date(s['timestamp'])}  [dim]{s['id']}[/dim]"
            )
        elif r.status_code == 409:
            failures += 1
            console.print(
                f"[yellow]skipped[/yellow] {path.name}  "
                f"already stored as [dim]{r.json().get('existing_id')}[/dim]"
            )
        else:
            failures += 1
            console.print(f"[red]failed[/red]  {path.name}  {error_message(r)}")

    if failures:
        raise SystemExit(1)


@click.command("history")
@click.argument("ip")
@click.pass_context
def history_cmd(ctx: click.Context, ip: str) -> None:
    """List snapshots for a host, newest first."""
    import httpx

    api_url: str = ctx.obj["api_url"]
    try:
        r = httpx.get(f"{api_url}/api/v1/hosts/{ip}/snapshots", timeout=10)
        r.raise_for_status()
    except httpx.ConnectError:
        console.print(f"[red]Cannot connect to API at {api_url}.[/red]")
        raise SystemExit(1)
    except httpx.HTTPStatusError as e:
        console.print(f"[red]Error:[/red] {error_message(e.response)}")
        raise SystemExit(1)

    items = r.json()["items"]
    if not items:
        console.print(f"[yellow]No snapshots for {ip}.[/yellow]")
        return
    console.print(history_table(ip, items))


@click.command("hosts")
@click.pass_context
def hosts_cmd(ctx: click.Context) -> None:
    """List hosts that have snapshot history."""
    import httpx

    api_url: str = ctx.obj["api_url"]
    try:
        r = httpx.get(f"{api_url}/api/v1/hosts", timeout=10)
        r.raise_for_status()
    except httpx.ConnectError:
        console.print(f"[red]Cannot connect to API at {api_url}.[/red]")
        raise SystemExit(1)
    except httpx.HTTPStatusError as e:
        console.print(f"[red]Error:[/red] {error_message(e.response)}")
        raise SystemExit(1)

    console.print(hosts_table(r.json()["items"]))
