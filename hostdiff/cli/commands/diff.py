"""CLI command for comparing two snapshots."""

from __future__ import annotations

import json

import click

from hostdiff.cli.commands.snapshots import error_message
from hostdiff.cli.output import console, diff_view


@click.command("diff")
@click.argument("old_id")
@click.argument("new_id")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the raw report")
@click.pass_context
def diff_cmd(ctx: click.Context, old_id: str, new_id: str, as_json: bool) -> None:
    """Show what changed between snapshot OLD_ID and snapshot NEW_ID."""
    import httpx

    from hostdiff.diff.engine import cve_attribution
    from hostdiff.schemas.snapshot import SnapshotOut

    api_url: str = ctx.obj["api_url"]
    try:
        r = httpx.get(
            f"{api_url}/api/v1/snapshots/compare",
            params={"a": old_id, "b": new_id},
            timeout=15,
        )
        r.raise_for_status()
        report = r.json()
        if as_json:
            click.echo(json.dumps(report, indent=2))
            return

        # Both snapshots exist at this point; fetch them for CVE attribution
        attributions = []
        for snapshot_id in (old_id, new_id):
            rs = httpx.get(f"{api_url}/api/v1/snapshots/{snapshot_id}", timeout=15)
            rs.raise_for_status()
            attributions.append(cve_attribution(SnapshotOut.model_validate(rs.json())))
    except httpx.ConnectError:
        console.print(f"[red]Cannot connect to API at {api_url}.[/red]")
        raise SystemExit(1)
    except httpx.HTTPStatusError as e:
        console.print(f"[red]Error:[/red] {error_message(e.response)}")
        raise SystemExit(1)

    diff_view(report, attributions[0], attributions[1])
