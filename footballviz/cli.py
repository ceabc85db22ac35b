"""
footballviz Command Line Interface.

Provides command-line access to the football analytics backend:
- Game listing, upload and play exploration (local filter / sort / paginate)
- Query trees: rendering, remote stats and execution
- Reports and exports
- Natural-language questions and fourth-down recommendations
- Watching a collaboration room

Usage:
    footballviz games
    footballviz plays 12 --preset red_zone --sort yards_gained --desc
    footballviz query tree.json --game 12 --execute
    footballviz watch chart_12

For detailed help on any command:
    footballviz <command> --help
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Dict, List, Optional, Sequence

import typer
from rich.console import Console
from rich.table import Table

from footballviz.config import settings
from footballviz.errors import ConfigurationError, FootballVizError
from footballviz.logging import setup_logging

# Create Typer app
app = typer.Typer(
    name="footballviz",
    help="footballviz - football analytics from the command line",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)
report_app = typer.Typer(help="Download reports and exports", no_args_is_help=True)
app.add_typer(report_app, name="report")

console = Console()


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level (default: FOOTBALLVIZ_LOG_LEVEL)",
    ),
):
    setup_logging(level=log_level)


# ============================================================================
# HELPERS
# ============================================================================


def _require_backend() -> None:
    try:
        settings.require_identity_provider()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e.message}")
        for name in e.details.get("missing", []):
            console.print(f"  - {name}")
        raise typer.Exit(1)


def _run(coro: Awaitable[Any]) -> Any:
    """Run a coroutine, turning footballviz errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except FootballVizError as e:
        console.print(f"[red]Error:[/red] {e.banner}")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _parse_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _parse_filters(filters: Sequence[str]) -> List[Dict[str, Any]]:
    parsed = []
    for filter_str in filters:
        parts = filter_str.split()
        if len(parts) < 3:
            console.print(f"[red]Invalid filter: '{filter_str}'. Use: FIELD OPERATOR VALUE[/red]")
            raise typer.Exit(1)
        field, op, *val_parts = parts
        parsed.append({"field": field, "operator": op, "value": _parse_value(" ".join(val_parts))})
    return parsed


def _parse_params(params: Sequence[str]) -> Dict[str, Any]:
    parsed = {}
    for kv in params:
        if "=" not in kv:
            console.print(f"[red]Invalid param format: '{kv}'. Use key=value[/red]")
            raise typer.Exit(1)
        key, value = kv.split("=", 1)
        parsed[key] = _parse_value(value)
    return parsed


def _rows_table(rows: Sequence[Any], columns: Sequence[Any]) -> Table:
    from footballviz.data.pipeline import record_value

    table = Table(show_header=True, header_style="bold")
    for column in columns:
        table.add_column(column.label, justify="right" if column.type == "number" else "left")
    for row in rows:
        values = [record_value(row, column.key) for column in columns]
        table.add_row(*["" if value is None else str(value) for value in values])
    return table


# ============================================================================
# GAME COMMANDS
# ============================================================================


@app.command(help="List uploaded games")
def games():
    """List games."""
    from footballviz.api import ApiClient, GameService

    _require_backend()

    async def run():
        async with ApiClient() as client:
            return await GameService(client).list_games()

    result = _run(run())
    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Week", justify="right")
    table.add_column("Opponent", style="cyan")
    table.add_column("Location")
    table.add_column("Uploaded", style="dim")
    for game in result:
        table.add_row(
            str(game.id), str(game.week), game.opponent, game.location,
            game.submission_timestamp or "",
        )
    console.print(table)
    console.print(f"\n[green]Total games: {len(result)}[/green]")


@app.command(
    help="""
    Upload a game's play-by-play CSV.

    Examples:
        footballviz upload week3.csv --week 3 --opponent Tigers --location Away
    """
)
def upload(
    csv_file: Path = typer.Argument(..., help="CSV file to upload"),
    week: int = typer.Option(..., "--week", "-w", help="Week number"),
    opponent: str = typer.Option(..., "--opponent", "-o", help="Opponent name"),
    location: str = typer.Option("Home", "--location", "-l", help="Home or Away"),
    notes: Optional[str] = typer.Option(None, "--notes", help="Analytics focus notes"),
):
    """Upload a game."""
    from footballviz.api import ApiClient, GameService

    _require_backend()

    async def run():
        async with ApiClient() as client:
            return await GameService(client).upload_game(week, opponent, location, csv_file, notes)

    result = _run(run())
    console.print(f"[bold green]✓ {result.get('message', 'Game uploaded')}[/bold green]")


@app.command(
    help="""
    Explore a game's plays with local filters, sorting and pagination.

    Filters are "FIELD OPERATOR VALUE" with operators equals, not_equals,
    greater_than, less_than, greater_equal, less_equal, contains, in.

    Examples:
        footballviz plays 12 --filter "down equals 3" --sort distance
        footballviz plays 12 --preset red_zone --sort yard_line --desc
        footballviz plays 12 --preset big_plays --export big_plays.csv
    """
)
def plays(
    game_id: int = typer.Argument(..., help="Game ID"),
    filters: List[str] = typer.Option([], "--filter", "-f", help="FIELD OPERATOR VALUE"),
    preset: Optional[str] = typer.Option(None, "--preset", help="Local preset key or name"),
    sort: Optional[str] = typer.Option(None, "--sort", "-s", help="Sort field"),
    desc: bool = typer.Option(False, "--desc", help="Sort descending"),
    page: int = typer.Option(1, "--page", "-p", help="Page number"),
    per_page: Optional[int] = typer.Option(None, "--per-page", help="Rows per page"),
    export: Optional[Path] = typer.Option(None, "--export", help="Write filtered rows to CSV"),
):
    """Fetch plays and run the local pipeline."""
    from footballviz.api import ApiClient, GameService
    from footballviz.data.explorer import DataExplorer

    _require_backend()
    parsed_filters = _parse_filters(filters)

    async def run():
        async with ApiClient() as client:
            return await GameService(client).get_game_plays(game_id)

    explorer = DataExplorer(_run(run()), page_size=per_page)
    for flt in parsed_filters:
        explorer.add_filter(flt["field"], flt["operator"], flt["value"])
    if preset:
        try:
            explorer.apply_preset(preset)
        except KeyError:
            console.print(f"[red]Unknown preset '{preset}'. See 'footballviz presets'.[/red]")
            raise typer.Exit(1)
    if sort:
        explorer.sort_field = sort
        explorer.sort_direction = "desc" if desc else "asc"
    explorer.set_page(page)

    console.print(_rows_table(explorer.page_rows(), explorer.visible_columns()))
    console.print(f"\n[dim]{explorer.page_label}[/dim]")

    summary = explorer.summary()
    if summary:
        console.print(
            f"[bold]Plays:[/bold] {summary.total_plays}  "
            f"[bold]Yards:[/bold] {summary.total_yards:.0f}  "
            f"[bold]Avg:[/bold] {summary.avg_yards:.1f}  "
            f"[bold]Success:[/bold] {summary.success_rate:.1f}%"
        )

    if export:
        path = explorer.export_csv(export, page_only=False)
        console.print(f"[green]✓ Exported to {path}[/green]")


@app.command(help="List local filter presets")
def presets():
    """List local presets."""
    from footballviz.data.presets import LOCAL_PRESETS

    table = Table(show_header=True, header_style="bold")
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("Description", style="dim")
    table.add_column("Filters")
    for key, preset in LOCAL_PRESETS.items():
        table.add_row(
            key,
            f"{preset.icon or ''} {preset.name}".strip(),
            preset.description,
            ", ".join(f"{f.field} {f.operator} {f.value}" for f in preset.filters),
        )
    console.print(table)


# ============================================================================
# QUERY COMMANDS
# ============================================================================


@app.command(help="Show the query builder's field schema")
def schema(
    json_out: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Fetch and print the field schema."""
    from footballviz.api import ApiClient, FilterService
    from footballviz.data.conditions import operators_for

    _require_backend()

    async def run():
        async with ApiClient() as client:
            return await FilterService(client).get_schema()

    result = _run(run())
    if json_out:
        console.print_json(data=result.model_dump())
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Field", style="cyan")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Widget", style="dim")
    table.add_column("Operators", style="dim")
    for name, field in result.fields.items():
        table.add_row(
            name, field.display_name, field.data_type, field.ui_type,
            ", ".join(operators_for(field.data_type)),
        )
    console.print(table)


@app.command(
    help="""
    Render a query tree and fetch its stats (and optionally its results).

    TREE is a JSON string or a path to a JSON file holding
    {"operator": "and", "conditions": [...]}.

    Examples:
        footballviz query '{"operator":"and","conditions":[{"field":"down","operator":"equals","value":3}]}'
        footballviz query tree.json --game 12 --execute --limit 20
        footballviz query tree.json --strict
    """
)
def query(
    tree: str = typer.Argument(..., help="Query tree JSON or file path"),
    game: Optional[int] = typer.Option(None, "--game", "-g", help="Game ID (default: first game)"),
    execute: bool = typer.Option(False, "--execute", "-x", help="Also run the query"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Max rows to return"),
    strict: bool = typer.Option(False, "--strict", help="Fail on fields the schema does not define"),
):
    """Render, stat and run a query tree."""
    from footballviz.api import ApiClient
    from footballviz.data.query_builder import QueryBuilder

    _require_backend()

    source = Path(tree)
    raw = source.read_text() if source.is_file() else tree
    try:
        tree_data = json.loads(raw)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON:[/red] {e}")
        raise typer.Exit(1)

    async def run():
        async with ApiClient() as client:
            builder = QueryBuilder(client, stats_delay=0)
            try:
                await builder.load()
                builder.set_query(tree_data)
                if strict:
                    builder.unknown_fields(strict=True)
                if game is not None:
                    builder.select_game(game)
                await builder.refresh_stats()
                if execute:
                    await builder.execute(limit)
            finally:
                await builder.close()
            return builder

    builder = _run(run())
    console.print(builder.render())
    console.print(f"\n[dim]{builder.describe()}[/dim]\n")

    for path, field in builder.unknown_fields():
        console.print(f"[yellow]Unknown field: {field}[/yellow] [dim](at {list(path)})[/dim]")
    if builder.error:
        console.print(f"[red]{builder.error.message}[/red]")

    if builder.stats:
        stats = builder.stats
        console.print(
            f"[bold]Plays:[/bold] {stats.total_plays}  "
            f"[bold]Avg yards:[/bold] {stats.avg_yards_gained:.1f}  "
            f"[bold]Success:[/bold] {stats.success_rate:.1f}%  "
            f"[bold]Formations:[/bold] {stats.formations_count}  "
            f"[bold]Play types:[/bold] {stats.play_types_count}"
        )
    if execute:
        console.print(f"\n[bold green]✓ {len(builder.results)} rows returned[/bold green]")
        if builder.results:
            console.print_json(data=builder.results[:5])


# ============================================================================
# REPORT COMMANDS
# ============================================================================


@report_app.command("team", help="Download a team report (pdf / excel)")
def report_team(
    team_id: int = typer.Argument(..., help="Team ID"),
    format: str = typer.Option("pdf", "--format", "-f", help="pdf or excel"),
    start_date: Optional[str] = typer.Option(None, "--start", help="Start date (YYYY-MM-DD)"),
    end_date: Optional[str] = typer.Option(None, "--end", help="End date (YYYY-MM-DD)"),
    out: Path = typer.Option(Path("."), "--out", "-o", help="Output directory"),
):
    from footballviz.api import ApiClient, ReportService

    _require_backend()

    async def run():
        async with ApiClient() as client:
            return await ReportService(client).team_report(team_id, format, start_date, end_date)

    path = _run(run()).save(out)
    console.print(f"[green]✓ Saved {path}[/green]")


@report_app.command("consultant", help="Download a multi-team consultant report")
def report_consultant(
    consultant_id: int = typer.Argument(..., help="Consultant ID"),
    teams: List[int] = typer.Option(..., "--team", "-t", help="Team ID (repeatable)"),
    format: str = typer.Option("pdf", "--format", "-f", help="pdf or excel"),
    out: Path = typer.Option(Path("."), "--out", "-o", help="Output directory"),
):
    from footballviz.api import ApiClient, ReportService

    _require_backend()

    async def run():
        async with ApiClient() as client:
            return await ReportService(client).consultant_report(consultant_id, teams, format)

    path = _run(run()).save(out)
    console.print(f"[green]✓ Saved {path}[/green]")


@report_app.command("game", help="Export a game's data (csv / json / excel)")
def report_game(
    game_id: int = typer.Argument(..., help="Game ID"),
    format: str = typer.Option("csv", "--format", "-f", help="csv, json or excel"),
    out: Path = typer.Option(Path("."), "--out", "-o", help="Output directory"),
):
    from footballviz.api import ApiClient, ReportService

    _require_backend()

    async def run():
        async with ApiClient() as client:
            return await ReportService(client).export_game_data(game_id, format)

    path = _run(run()).save(out)
    console.print(f"[green]✓ Saved {path}[/green]")


# ============================================================================
# ASSISTANT COMMANDS
# ============================================================================


@app.command(
    help="""
    Ask a question in plain English.

    Examples:
        footballviz ask "How did we do on third and short?" --game 12
        footballviz ask "red zone passes" --translate
        footballviz ask "What worked best?" --basic
    """
)
def ask(
    question: str = typer.Argument(..., help="Question"),
    game: Optional[int] = typer.Option(None, "--game", "-g", help="Game ID for context"),
    translate: bool = typer.Option(False, "--translate", help="Only translate to filters"),
    basic: bool = typer.Option(False, "--basic", help="Use the basic AI endpoint"),
):
    from footballviz.api import ApiClient, AssistantService

    _require_backend()

    async def run():
        async with ApiClient() as client:
            assistant = AssistantService(client)
            if translate:
                return await assistant.translate_query(question)
            if basic:
                return await assistant.ask_question(question)
            return await assistant.ask_langchain_query(question, game)

    result = _run(run())
    if translate:
        if not result.success:
            console.print(f"[red]{result.error_message or 'Could not translate query'}[/red]")
            for suggestion in result.suggested_corrections:
                console.print(f"  - {suggestion}")
            raise typer.Exit(1)
        console.print(f"[bold]Confidence:[/bold] {result.confidence_score:.0%}")
        if result.filters:
            console.print(f"[dim]{result.filters.interpretation}[/dim]")
            console.print_json(data=result.filters.model_dump())
        return

    if basic:
        console.print(result.response)
        return

    if not result.success:
        console.print(f"[red]{result.error_message or 'Query failed'}[/red]")
        raise typer.Exit(1)
    console.print(result.response or "")
    if result.data_count is not None:
        console.print(f"\n[dim]Based on {result.data_count} plays[/dim]")


@app.command(
    help="""
    Get a fourth-down recommendation from the decision service.

    Examples:
        footballviz decide --param down=4 --param distance=2 --param yard_line=65
    """
)
def decide(
    params: List[str] = typer.Option([], "--param", "-p", help="Situation as key=value"),
):
    from footballviz.api import DecisionService

    parsed = _parse_params(params)
    result = _run(DecisionService().recommend(**parsed))

    console.print(
        f"\n[bold]Recommendation:[/bold] [cyan]{result.recommendation}[/cyan] "
        f"([green]{result.delta_wp:+.1%}[/green] win probability)"
    )
    if result.alternatives:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Action")
        table.add_column("Win prob.", justify="right")
        for alt in result.alternatives:
            table.add_row(alt.action, f"{alt.wp:.1%}")
        console.print(table)
    for reason in result.rationale:
        console.print(f"  - {reason}")
    if result.version:
        console.print(f"\n[dim]model {result.version}[/dim]")


# ============================================================================
# COLLABORATION COMMAND
# ============================================================================


@app.command(
    help="""
    Join a collaboration room and print activity until interrupted.

    Examples:
        footballviz watch chart_12
        footballviz watch team_4 --type team
    """
)
def watch(
    room: str = typer.Argument(..., help="Room ID"),
    room_type: str = typer.Option("chart", "--type", help="chart, game or team"),
):
    from footballviz.collab import CollaborationProvider

    _require_backend()
    if not settings.FOOTBALLVIZ_API_TOKEN:
        console.print("[red]FOOTBALLVIZ_API_TOKEN is required to join a room[/red]")
        raise typer.Exit(1)

    def on_presence(data):
        if data.get("room_id") == room:
            users = data.get("active_users") or []
            console.print(f"[cyan]{len(users)} active user(s)[/cyan]")

    def on_chart(data):
        if data.get("room_id") == room:
            by = (data.get("updated_by") or {}).get("type", "team")
            changes = data.get("changes") or {}
            console.print(f"[green]{by}[/green] changed: {json.dumps(changes)}")

    def on_typing(data):
        state = "typing" if data.get("is_typing") else "stopped typing"
        console.print(f"[dim]{data.get('user_id')} {state} in {data.get('field', 'general')}[/dim]")

    def on_notification(data):
        console.print(f"[yellow]🔔 {data.get('message', '')}[/yellow]")

    async def run():
        async with CollaborationProvider() as provider:
            if not provider.is_connected:
                console.print(f"[red]{provider.error.message or 'Not connected'}[/red]")
                return
            for event in ("user_joined", "user_left", "collaboration_joined"):
                provider.subscribe(event, on_presence)
            provider.subscribe("chart_updated", on_chart)
            provider.subscribe("user_typing", on_typing)
            provider.subscribe("notification_received", on_notification)
            await provider.join_room(room, room_type)
            console.print(f"[bold]Watching {room}[/bold] [dim](Ctrl+C to stop)[/dim]")
            try:
                await asyncio.Event().wait()
            finally:
                await provider.leave_room(room)

    try:
        _run(run())
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped[/dim]")


# ============================================================================
# CONFIG COMMAND
# ============================================================================


@app.command(
    help="""
    Show current configuration.

    Displays all configuration values from environment variables and .env file.
    """
)
def config(
    json_out: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
):
    """Show current configuration."""
    config_dict = settings.model_dump()
    secrets = {"FOOTBALLVIZ_API_TOKEN", "SUPABASE_ANON_KEY"}
    for key in secrets:
        if config_dict.get(key):
            config_dict[key] = "***"

    if json_out:
        console.print_json(data=config_dict)
        return

    console.print("\n[bold]footballviz Configuration[/bold]\n")

    categories = {
        "Backend": [
            "FOOTBALLVIZ_API_URL",
            "FOOTBALLVIZ_SOCKET_URL",
            "FOOTBALLVIZ_API_TOKEN",
            "FOOTBALLVIZ_HTTP_TIMEOUT",
            "ENVIRONMENT",
        ],
        "Identity Provider": ["SUPABASE_URL", "SUPABASE_ANON_KEY"],
        "Decision Service": ["DECISION_API_URL"],
        "Logging": ["FOOTBALLVIZ_LOG_LEVEL", "LOG_FORMAT"],
        "Realtime": [
            "SOCKET_RECONNECTION_ATTEMPTS",
            "SOCKET_RECONNECTION_DELAY",
            "SOCKET_CONNECT_TIMEOUT",
            "TYPING_TIMEOUT_SECONDS",
            "CURSOR_THROTTLE_SECONDS",
        ],
        "Query Builder": [
            "QUERY_MAX_NESTING_LEVEL",
            "QUERY_EXECUTE_LIMIT",
            "QUERY_STATS_DEBOUNCE_SECONDS",
            "EXPLORER_PAGE_SIZE",
        ],
        "Concurrency": [
            "MAX_CONCURRENT_LIGHT",
            "MAX_CONCURRENT_STANDARD",
            "MAX_CONCURRENT_HEAVY",
        ],
    }

    for category, keys in categories.items():
        console.print(f"[bold cyan]{category}:[/bold cyan]")
        for key in keys:
            if key in config_dict:
                console.print(f"  {key}: [green]{config_dict[key]}[/green]")
        console.print()


# ============================================================================
# VERSION COMMAND
# ============================================================================


@app.command(help="Show version information")
def version():
    """Show version information."""
    try:
        import importlib.metadata

        version = importlib.metadata.version("footballviz")
    except importlib.metadata.PackageNotFoundError:
        version = "unknown"

    console.print(f"\n[bold]footballviz[/bold] version [cyan]{version}[/cyan]")
    console.print("Football analytics client and collaboration tools\n")


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    app()
