"""
CLI interface for Volcano Studio.

Provides command-line access to compile, lint, discovery and saved projects.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from volcano_studio.config.loader import default_studio_config, load_studio_config
from volcano_studio.core.compiler import compile_prompt
from volcano_studio.core.document import Category, PromptDocument
from volcano_studio.core.errors import StudioError
from volcano_studio.core.library import CATEGORY_FLAVORS, LIBRARY
from volcano_studio.core.lint import Severity, lint_prompt
from volcano_studio.core.lookups import create_lookup_service
from volcano_studio.storage.repository import ProjectRepository, initialize_schema

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

LOCAL_CLIENT = "cli"


def _load_config(config_path: Optional[str]):
    return load_studio_config(config_path) if config_path else default_studio_config()


def _load_document(path: str) -> PromptDocument:
    """Read a JSON or YAML document file."""
    with open(Path(path), 'r', encoding='utf-8') as f:
        return PromptDocument.from_dict(yaml.safe_load(f))


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Volcano Studio CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if ctx.invoked_subcommand is None:
        console.print("Volcano Studio - Use --help to see available commands")


@app.command()
def init(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to studio YAML config"),
):
    """Initialize the cache and project database."""
    try:
        studio_config = _load_config(config)
        initialize_schema(studio_config.db_path)
        console.print(f"[green]✓[/] Database initialized at {studio_config.db_path}")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error initializing database:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command("compile")
def compile_command(path: str = typer.Argument(..., help="Document file (JSON or YAML)")):
    """Print the rendered prompt for a document."""
    try:
        document = _load_document(path)
    except (OSError, yaml.YAMLError) as e:
        console.print(f"[red]Error reading document:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    # plain print keeps the prompt copyable, rich would reflow it
    print(compile_prompt(document))


@app.command()
def lint(
    path: str = typer.Argument(..., help="Document file (JSON or YAML)"),
    enforced: bool = typer.Option(
        False,
        "--enforced",
        "-e",
        help="Exit with error code if any finding is an error"
    ),
):
    """Run quality checks on a document."""
    try:
        document = _load_document(path)
    except (OSError, yaml.YAMLError) as e:
        console.print(f"[red]Error reading document:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    findings = lint_prompt(document)
    if not findings:
        console.print("[green]✓[/] No findings")
        sys.exit(EXIT_CODE_PASS)

    table = Table(title="Prompt Lint")
    table.add_column("Severity", no_wrap=True)
    table.add_column("Code", no_wrap=True)
    table.add_column("Message")
    table.add_column("Hint", style="dim")
    for finding in findings:
        color = "red" if finding.severity is Severity.ERROR else "yellow"
        table.add_row(f"[{color}]{finding.severity.value}[/]", finding.code, finding.message, finding.hint or "")
    console.print(table)

    has_error = any(f.severity is Severity.ERROR for f in findings)
    if enforced and has_error:
        sys.exit(EXIT_CODE_FAIL)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def discover(
    term: str = typer.Argument(..., help="Word or phrase to expand"),
    topics: Optional[str] = typer.Option(None, "--topics", "-t", help="Comma-separated topic hint"),
    max_results: int = typer.Option(25, "--max", "-m", help="Maximum candidates (5-50)"),
    flavors: Optional[str] = typer.Option(None, "--flavors", "-f", help="Comma-separated flavors, e.g. ml,syn,trg"),
    category: Optional[str] = typer.Option(None, "--category", help="Use this category's default flavors"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to studio YAML config"),
):
    """Find related vocabulary for a term."""
    selected = None
    if flavors:
        selected = [f for f in flavors.split(",") if f.strip()]
    elif category:
        try:
            selected = list(CATEGORY_FLAVORS[Category(category.lower())])
        except ValueError:
            console.print(f"[red]Unknown category:[/] {category}")
            sys.exit(EXIT_CODE_FAIL)

    try:
        service = create_lookup_service(_load_config(config))
        result = asyncio.run(service.discover(LOCAL_CLIENT, term, topics, max_results, selected))
    except StudioError as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if not result.data:
        console.print(f"[yellow]No candidates found for[/] {result.query}")
        sys.exit(EXIT_CODE_PASS)

    table = Table(title=f"Candidates for '{result.query}'")
    table.add_column("Word")
    table.add_column("Score", justify="right")
    table.add_column("Flavor")
    for candidate in result.data:
        table.add_row(candidate.text, f"{candidate.adjusted_score:g}", candidate.flavor.value)
    console.print(table)


@app.command()
def library(category: Optional[str] = typer.Argument(None, help="Only show this category")):
    """List preset fragments."""
    entries = LIBRARY
    if category:
        entries = [e for e in LIBRARY if e.category.value == category.lower()]
        if not entries:
            console.print(f"[red]Unknown category:[/] {category}")
            sys.exit(EXIT_CODE_FAIL)

    for entry in entries:
        table = Table(title=f"{entry.label} ({entry.category.value})")
        table.add_column("Label")
        table.add_column("Text")
        table.add_column("Weight", justify="right")
        for preset in entry.presets:
            weight = f"{preset.weight:g}" if preset.weight is not None else ""
            table.add_row(preset.label, preset.text, weight)
        console.print(table)


@app.command()
def save(
    path: str = typer.Argument(..., help="Document file (JSON or YAML)"),
    name: str = typer.Argument(..., help="Project name"),
    session: str = typer.Option(LOCAL_CLIENT, "--session", "-s", help="Session id owning the project"),
    project_id: Optional[str] = typer.Option(None, "--id", help="Overwrite this project"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to studio YAML config"),
):
    """Save a document as a project."""
    try:
        studio_config = _load_config(config)
        initialize_schema(studio_config.db_path)
        repository = ProjectRepository(
            studio_config.db_path, save_limit=studio_config.get_feature_config("projects")
        )
        saved_id = repository.save_project(session, name, _load_document(path), project_id)
    except (OSError, yaml.YAMLError, StudioError) as e:
        console.print(f"[red]Error saving project:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"[green]✓[/] Saved project {saved_id}")


@app.command()
def projects(
    session: str = typer.Option(LOCAL_CLIENT, "--session", "-s", help="Session id owning the projects"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to studio YAML config"),
):
    """List saved projects for a session."""
    studio_config = _load_config(config)
    initialize_schema(studio_config.db_path)
    summaries = ProjectRepository(studio_config.db_path).list_projects(session)
    if not summaries:
        console.print("[dim]No saved projects.[/]")
        return

    table = Table(title="Projects")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Updated", justify="right")
    for summary in summaries:
        table.add_row(summary.id, summary.name, str(summary.updated_at))
    console.print(table)


if __name__ == "__main__":
    app()
