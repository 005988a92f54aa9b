"""CyberMoriarty CLI."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from moriarty.catalog.models import CVEDetails
from moriarty.core import MoriartyError, get_logger, get_settings, setup_logging
from moriarty.intel.nvd_client import CVEQuery, NVDClient

app = typer.Typer(name="moriarty", help="AI-assisted vulnerability intelligence dashboard")
console = Console()
logger = get_logger(__name__)


def _nvd_client() -> NVDClient:
    settings = get_settings()
    return NVDClient(
        base_url=settings.nvd_base_url,
        api_key=settings.nvd_api_key.get_secret_value() if settings.nvd_api_key else None,
        timeout=settings.nvd_timeout_seconds,
    )


def _cve_table(cve: CVEDetails) -> Table:
    table = Table(title=cve.cve_id)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Severity", cve.severity)
    table.add_row("CVSS", "-" if cve.cvss_score is None else f"{cve.cvss_score:.1f}")
    table.add_row("Vendor", cve.vendor or "-")
    table.add_row("Product", cve.product or "-")
    table.add_row("Published", cve.published_date.isoformat() if cve.published_date else "-")
    table.add_row("Description", cve.description)
    if cve.references:
        table.add_row("References", "\n".join(cve.references[:5]))
    return table


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port"),
):
    """Start the dashboard API server."""
    from moriarty.api.app import run_server

    console.print("[green]Starting CyberMoriarty API...[/green]")
    run_server(host=host, port=port)


@app.command()
def lookup(cve_id: str = typer.Argument(..., help="CVE identifier, e.g. CVE-2021-44228")):
    """Look up a single CVE in the NVD."""
    settings = get_settings()
    setup_logging(log_level=settings.log_level, log_format=settings.log_format)

    try:
        cve = asyncio.run(_nvd_client().fetch_cve(cve_id.strip()))
    except MoriartyError as e:
        console.print(f"[red]Lookup failed: {e.message}[/red]")
        raise typer.Exit(code=1)

    console.print(_cve_table(cve))


@app.command("search-nvd")
def search_nvd(
    keyword: Optional[str] = typer.Option(None, "--keyword", "-k", help="Keyword search"),
    severity: Optional[str] = typer.Option(None, "--severity", "-s", help="CVSS v3 severity"),
    results: int = typer.Option(20, "--results", "-n", min=1, max=2000, help="Results per page"),
):
    """Search the NVD and print one page of matches."""
    settings = get_settings()
    setup_logging(log_level=settings.log_level, log_format=settings.log_format)

    query = CVEQuery(keyword=keyword, severity=severity, results_per_page=results)
    try:
        page = asyncio.run(_nvd_client().search_cves(query))
    except MoriartyError as e:
        console.print(f"[red]Search failed: {e.message}[/red]")
        raise typer.Exit(code=1)

    table = Table(title=f"NVD results ({len(page.cves)} of {page.total_results})")
    table.add_column("CVE", style="cyan")
    table.add_column("Severity")
    table.add_column("CVSS", justify="right")
    table.add_column("Product")
    for cve in page.cves:
        table.add_row(
            cve.cve_id,
            cve.severity,
            "-" if cve.cvss_score is None else f"{cve.cvss_score:.1f}",
            cve.product or "-",
        )

    console.print(table)


if __name__ == "__main__":
    app()
