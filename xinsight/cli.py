"""Command-line interface for xinsight."""

import asyncio
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from xinsight import ScrapeRequest, Workflow, WorkflowState, WorkflowStatus, XinsightConfig, __version__
from xinsight.config import LogFormat
from xinsight.core.exporter import save_export
from xinsight.core.profiles import DEFAULT_PROFILE_ID, ProfileStore
from xinsight.exceptions import ProfileNotFoundError
from xinsight.models.request import MAX_DESIRED_COUNT, MIN_DESIRED_COUNT

app = typer.Typer(
    name="xinsight",
    help="Scrape X/Twitter accounts and analyze the posts with an LLM",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"
    RAW_CSV = "raw-csv"


def version_callback(value: bool):
    if value:
        console.print(f"xinsight version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """xinsight - X/Twitter scrape-and-analyze pipeline."""
    pass


@app.command()
def scrape(
    targets: list[str] = typer.Argument(..., help="Account handles or profile URLs"),
    token: str = typer.Option(
        ..., "--token", "-t", envvar="XINSIGHT_APIFY_TOKEN", help="Apify API token"
    ),
    count: int = typer.Option(
        10, "--count", "-n", min=MIN_DESIRED_COUNT, max=MAX_DESIRED_COUNT,
        help="Posts to fetch per account",
    ),
    replies: bool = typer.Option(True, "--replies/--no-replies", help="Include replies"),
    user_info: bool = typer.Option(
        True, "--user-info/--no-user-info", help="Include account info"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Directory for the exported file"
    ),
    fmt: ExportFormat = typer.Option(
        ExportFormat.JSON, "--format", "-f", help="Export format"
    ),
    analyze_with: Optional[str] = typer.Option(
        None, "--analyze", "-a", help="Analyze the result with this profile id"
    ),
    openai_key: Optional[str] = typer.Option(
        None, "--openai-key", envvar="XINSIGHT_OPENAI_API_KEY", help="OpenAI API key"
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress progress, only show errors"
    ),
):
    """Scrape posts for one or more accounts and export them."""
    config = XinsightConfig(log_format=LogFormat.JSON, log_level="ERROR") if quiet else XinsightConfig()
    request = ScrapeRequest(
        credentials=token,
        targets=targets,
        desired_count=count,
        include_replies=replies,
        include_user_info=user_info,
    )

    prompt = None
    if analyze_with:
        prompt = _resolve_prompt(ProfileStore(), analyze_with, None)
        if not openai_key:
            err_console.print("[red]--openai-key is required with --analyze[/red]")
            raise typer.Exit(1)

    async def run():
        async with Workflow(config) as workflow:
            if not quiet:
                workflow.subscribe(_print_progress)
            state = await workflow.run(request)

            if state.status is not WorkflowStatus.COMPLETED:
                err_console.print(f"[red]✗[/red] Scrape failed: {state.message}")
                raise typer.Exit(1)

            if fmt is ExportFormat.CSV:
                content, kind = workflow.export_csv(), "csv"
            elif fmt is ExportFormat.RAW_CSV:
                content, kind = workflow.export_raw_csv(), "csv"
            else:
                content, kind = workflow.export_json(), "json"

            if output:
                filepath = save_export(content, output, kind)
                err_console.print(f"[dim]Saved to {filepath}[/dim]")
            else:
                typer.echo(content, nl=False)

            if not quiet:
                _print_summary(workflow)

            if prompt:
                outcome = await workflow.analyze(openai_key, prompt)
                if not outcome.success:
                    err_console.print(f"[red]✗[/red] Analysis failed: {outcome.error}")
                    raise typer.Exit(1)
                console.print(outcome.text)

    asyncio.run(run())


@app.command()
def analyze(
    data_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Exported JSON or CSV file"
    ),
    openai_key: str = typer.Option(
        ..., "--openai-key", envvar="XINSIGHT_OPENAI_API_KEY", help="OpenAI API key"
    ),
    profile: str = typer.Option(
        DEFAULT_PROFILE_ID, "--profile", "-p", help="Analysis profile id"
    ),
    prompt: Optional[str] = typer.Option(
        None, "--prompt", help="Custom prompt, overrides --profile"
    ),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Completion model"),
):
    """Analyze a previously exported file."""
    config = XinsightConfig()
    text = _resolve_prompt(ProfileStore(), profile, prompt)
    data = data_file.read_text(encoding="utf-8")

    async def run():
        async with Workflow(config) as workflow:
            outcome = await workflow.analyze(openai_key, text, model=model, data=data)
            if not outcome.success:
                err_console.print(f"[red]✗[/red] Analysis failed: {outcome.error}")
                raise typer.Exit(1)
            console.print(outcome.text)

    asyncio.run(run())


@app.command()
def profiles():
    """List the built-in analysis profiles."""
    store = ProfileStore()
    table = Table(title="Analysis profiles")
    table.add_column("Id", style="bold")
    table.add_column("Name")
    table.add_column("Prompt", style="dim")

    for p in store.list():
        marker = " [green]*[/green]" if p.id == store.selected_id else ""
        table.add_row(p.id + marker, p.name, p.prompt_template)

    console.print(table)


def _resolve_prompt(store: ProfileStore, profile_id: str, prompt: str | None) -> str:
    if prompt:
        return prompt
    try:
        return store.get(profile_id).prompt_template
    except ProfileNotFoundError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def _print_progress(state: WorkflowState):
    if state.status is WorkflowStatus.IN_PROGRESS:
        err_console.print(f"[dim]… {state.phase.value}[/dim]")


def _print_summary(workflow: Workflow):
    rows = workflow.rows
    accounts = {r.get("username") for r in workflow.raw_records if isinstance(r, dict)}
    accounts.discard(None)
    err_console.print(
        f"\n[bold]Retrieved {len(rows)} posts from {len(accounts)} accounts[/bold]"
    )


if __name__ == "__main__":
    app()
