"""Rich output helpers — history tables and the diff view."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text

console = Console()


def status_style(status: str) -> str:
    return {
        "open": "green",
        "closed": "dim",
        "filtered": "yellow",
        "added": "green",
        "removed": "red",
        "changed": "yellow",
    }.get(status, "white")


def fmt_date(iso: str | None) -> str:
    if not iso:
        return "—"
    try:
        dt = datetime.fromisoformat(iso.replace("Z", "+00:00"))
        return dt.strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        return iso


def _or_dash(value: str | None) -> str:
    return value if value else "—"


def _software_str(service: dict[str, Any]) -> str:
    sw = service.get("software") or {}
    parts = [sw.get("vendor"), sw.get("product"), sw.get("version")]
    return " ".join(p for p in parts if p) or "—"


def _tls_str(service: dict[str, Any]) -> str:
    tls = service.get("tls") or {}
    parts = [tls.get("version"), tls.get("cipher")]
    return " ".join(p for p in parts if p) or "—"


def history_table(ip: str, items: list[dict[str, Any]]) -> Table:
    table = Table(
        title=f"Snapshots for {ip} ({len(items)})",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("Timestamp", style="bold", no_wrap=True)
    table.add_column("ID", style="dim", no_wrap=True)

    for index, s in enumerate(items, start=1):
        table.add_row(str(index), fmt_date(s.get("timestamp")), str(s.get("id", "")))
    return table


def hosts_table(items: list[dict[str, Any]]) -> Table:
    table = Table(
        title=f"Hosts ({len(items)})",
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("IP", style="bold", no_wrap=True)
    table.add_column("Snapshots", justify="right")
    table.add_column("Latest", style="dim")

    for h in items:
        table.add_row(
            h.get("ip_address", ""),
            str(h.get("snapshot_count", 0)),
            fmt_date(h.get("latest_timestamp")),
        )
    return table


def services_table(title: str, services: list[dict[str, Any]], marker: str) -> Table:
    table = Table(title=title, header_style="bold cyan", border_style="dim")
    table.add_column("", no_wrap=True)
    table.add_column("Port", justify="right")
    table.add_column("Proto")
    table.add_column("State")
    table.add_column("Software")
    table.add_column("TLS")
    table.add_column("CVEs", justify="right")

    style = status_style("added" if marker == "+" else "removed")
    for s in services:
        state = s.get("state", "?")
        table.add_row(
            Text(marker, style=style),
            str(s.get("port", "")),
            s.get("protocol", ""),
            Text(state, style=status_style(state)),
            _software_str(s),
            _tls_str(s),
            str(len(s.get("vulnerabilities") or [])),
        )
    return table


def changes_table(changed: list[dict[str, Any]]) -> Table:
    table = Table(
        title=f"Changed services ({len(changed)})",
        header_style="bold cyan",
        border_style="dim",
        show_lines=True,
    )
    table.add_column("Service", no_wrap=True)
    table.add_column("Field")
    table.add_column("Old", style="red")
    table.add_column("New", style="green")

    for c in changed:
        label = f"{c.get('port')}/{c.get('protocol')}"
        for index, change in enumerate(c.get("changes", [])):
            table.add_row(
                label if index == 0 else "",
                change.get("field", ""),
                _or_dash(change.get("old")),
                _or_dash(change.get("new")),
            )
    return table


def _cve_lines(
    cves: list[str], marker: str, attribution: dict[str, list[tuple[int, str]]]
) -> None:
    style = status_style("added" if marker == "+" else "removed")
    for cve in cves:
        where = ", ".join(f"{port}/{proto}" for port, proto in attribution.get(cve, []))
        suffix = f" [dim]({where})[/dim]" if where else ""
        console.print(f"  [{style}]{marker} {cve}[/{style}]{suffix}")


def diff_view(
    report: dict[str, Any],
    attribution_a: dict[str, list[tuple[int, str]]] | None = None,
    attribution_b: dict[str, list[tuple[int, str]]] | None = None,
) -> None:
    """Print a human-facing rendering of a DiffReport.

    Counts come straight from list lengths; the attribution maps (CVE id to
    service keys) only decorate the CVE lines.
    """
    console.rule("[bold cyan]Snapshot diff")
    console.print(f"  [dim]{report.get('summary', '')}[/dim]")

    lists = ("added_services", "removed_services", "changed_services", "added_cves", "removed_cves")
    if not report.get("os_change") and not any(report.get(k) for k in lists):
        console.print("\n[green]No changes.[/green]")
        return

    os_change = report.get("os_change")
    if os_change:
        console.print(
            f"\n  [bold]OS[/bold]  [red]{_or_dash(os_change.get('old_name'))}[/red]"
            f" -> [green]{_or_dash(os_change.get('new_name'))}[/green]"
        )

    added = report.get("added_services") or []
    if added:
        console.print()
        console.print(services_table(f"Added services ({len(added)})", added, "+"))

    removed = report.get("removed_services") or []
    if removed:
        console.print()
        console.print(services_table(f"Removed services ({len(removed)})", removed, "-"))

    changed = report.get("changed_services") or []
    if changed:
        console.print()
        console.print(changes_table(changed))

    added_cves = report.get("added_cves") or []
    if added_cves:
        console.print(f"\n[bold]Added vulnerabilities ({len(added_cves)})[/bold]")
        _cve_lines(added_cves, "+", attribution_b or {})

    removed_cves = report.get("removed_cves") or []
    if removed_cves:
        console.print(f"\n[bold]Removed vulnerabilities ({len(removed_cves)})[/bold]")
        _cve_lines(removed_cves, "-", attribution_a or {})
