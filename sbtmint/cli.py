"""
SBTMint CLI - verify DOIs and mint authorship SBTs from the terminal
"""
import sys

import click
from rich.console import Console
from rich.table import Table

from sbtmint.config import get_config
from sbtmint.models import Accepted, Rejected, Rejection, SubmissionRequest
from sbtmint.services import get_orchestrator
from sbtmint.utils import get_logger, normalize_doi, setup_logging

console = Console()
logger = get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════
# MAIN CLI GROUP
# ═══════════════════════════════════════════════════════════════════

@click.group()
@click.version_option(version='0.1.0')
@click.option('--log-level', default=None, help='Override SBTMINT_LOG_LEVEL')
def main(log_level):
    """
    SBTMint - DOI-verified soulbound authorship credentials

    Checks a work against OpenAlex and mints an SBT for it, once per DOI.
    """
    cfg = get_config()
    setup_logging(log_level or cfg.log_level, cfg.log_file)


# ═══════════════════════════════════════════════════════════════════
# VERIFICATION
# ═══════════════════════════════════════════════════════════════════

@main.command()
@click.argument('doi')
@click.argument('title')
def verify(doi, title):
    """Check DOI and TITLE against OpenAlex without minting"""
    identifier = normalize_doi(doi)
    console.print(f"\n[bold blue]Verifying:[/bold blue] {identifier}")

    with console.status("[bold green]Looking up OpenAlex..."):
        result = get_orchestrator().verify_only(
            SubmissionRequest(identifier=identifier, claimed_title=title)
        )

    if isinstance(result, Rejection):
        console.print(f"\n[red]✗ {result.message}[/red]")
        sys.exit(1)

    console.print(f"  OpenAlex ID: [cyan]{result.external_id}[/cyan]")
    console.print(f"  Title: [cyan]{result.canonical_title}[/cyan]")
    console.print("\n[green]✓ Title matches[/green]")


# ═══════════════════════════════════════════════════════════════════
# SUBMISSION
# ═══════════════════════════════════════════════════════════════════

@main.command()
@click.argument('doi')
@click.argument('title')
@click.option('--repository', '-r', default='', help='GitHub / repository link')
@click.option('--abstract', '-a', default='', help='Abstract or short description')
def submit(doi, title, repository, abstract):
    """Verify DOI and TITLE, then mint the SBT"""
    request = SubmissionRequest(
        identifier=normalize_doi(doi),
        claimed_title=title,
        repository_link=repository,
        abstract_text=abstract,
    )
    console.print(f"\n[bold blue]Submitting:[/bold blue] {request.identifier}")

    with console.status("[bold green]Verifying and minting (approve in your wallet)..."):
        outcome = get_orchestrator().submit(request)

    if isinstance(outcome, Accepted):
        console.print("\n[green]✓ SBT Minted Successfully![/green]")
        console.print(f"  {outcome.message}")
        return

    if isinstance(outcome, Rejected):
        console.print(f"\n[yellow]✗ {outcome.message}[/yellow]")
    else:
        console.print("\n[red]✗ Minting Failed[/red]")
        console.print(f"  {outcome.message}")
    sys.exit(1)


# ═══════════════════════════════════════════════════════════════════
# REGISTRY
# ═══════════════════════════════════════════════════════════════════

@main.command()
def registry():
    """List DOIs that already have an SBT"""
    identifiers = get_orchestrator().registry.identifiers()
    cfg = get_config()

    table = Table(title=f"Submitted DOIs ({cfg.registry_backend})")
    table.add_column("#", style="dim")
    table.add_column("DOI", style="cyan")
    for i, identifier in enumerate(identifiers, 1):
        table.add_row(str(i), identifier)

    console.print(table)
    console.print(f"\n[green]{len(identifiers)} DOI(s) recorded[/green]")


# ═══════════════════════════════════════════════════════════════════
# SERVER
# ═══════════════════════════════════════════════════════════════════

@main.command()
@click.option('--host', default=None, help='Bind address (default SBTMINT_API_HOST)')
@click.option('--port', default=None, type=int, help='Port (default SBTMINT_API_PORT)')
def serve(host, port):
    """Run the HTTP API with uvicorn"""
    import uvicorn

    cfg = get_config()
    uvicorn.run(
        "sbtmint.api.main:app",
        host=host or cfg.api_host,
        port=port or cfg.api_port,
        log_level=cfg.log_level.lower(),
    )


if __name__ == '__main__':
    main()
