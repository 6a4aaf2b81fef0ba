"""CLI interface for Mercado"""

import logging

import typer
from rich.console import Console

from .analyzer import ANALYSIS_MODES, SORT_OPTIONS, filter_analyses, sort_analyses
from .compact_display import CompactDisplay
from .config import Settings, get_settings
from .laliga_client import LaLigaAPIError, LaLigaClient
from .league_analyzer import LeagueAnalyzer
from .services.trend_service import calculate_momentum

app = typer.Typer(
    name="mercado",
    help="LaLiga Fantasy market analytics - trends, momentum and buy/sell scores",
    add_completion=False,
)
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    """Set up logging for every command"""
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def get_client(settings: Settings) -> LaLigaClient:
    """Initialize and return the API client"""
    if not settings.laliga_token:
        console.print("[red]LALIGA_TOKEN is not set (environment or .env)[/red]")
        raise typer.Exit(code=1)
    return LaLigaClient.from_settings(settings)


def _resolve_league_id(client: LaLigaClient, league: str | None) -> str:
    if league:
        return league
    leagues = client.get_leagues()
    if not leagues:
        console.print("[red]No leagues found[/red]")
        raise typer.Exit(code=1)
    return leagues[0].id


@app.command()
def leagues():
    """List your leagues"""
    settings = get_settings()
    client = get_client(settings)
    try:
        CompactDisplay(console).display_leagues(client.get_leagues())
    except LaLigaAPIError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e


@app.command()
def analyze(
    league: str = typer.Option(None, "--league", "-l", help="League ID (defaults to first)"),
    mode: str = typer.Option("portfolio", "--mode", "-m", help="portfolio, market or buyout"),
    sort: str = typer.Option("mode-default", "--sort", "-s", help="Sort option"),
    min_alerts: int = typer.Option(0, "--min-alerts", help="Only players with this many alerts"),
    max_market: int = typer.Option(None, "--max-market", help="Cap on market listings"),
    limit: int = typer.Option(30, "--limit", "-n", help="Rows to show"),
):
    """Analyze your squad, the market and other managers' players"""
    if mode not in ANALYSIS_MODES:
        console.print(f"[red]Invalid mode '{mode}'. Use one of: {', '.join(ANALYSIS_MODES)}[/red]")
        raise typer.Exit(code=1)
    if sort not in SORT_OPTIONS:
        console.print(f"[red]Invalid sort '{sort}'. Use one of: {', '.join(SORT_OPTIONS)}[/red]")
        raise typer.Exit(code=1)

    settings = get_settings()
    client = get_client(settings)
    analyzer = LeagueAnalyzer(client, settings)

    try:
        league_id = _resolve_league_id(client, league)
        console.print(f"\n[bold]Analyzing league {league_id}[/bold]\n")

        def on_progress(done: int, total: int):
            if done % 10 == 0 or done == total:
                console.print(f"[dim]  {done}/{total} players[/dim]")

        analyses = analyzer.analyze_league(
            league_id,
            include_my_players=mode == "portfolio",
            include_market=mode == "market",
            include_other_managers=mode == "buyout",
            max_market_players=max_market,
            on_progress=on_progress,
        )
    except LaLigaAPIError as e:
        console.print(f"[red]✗ Analysis failed: {e}[/red]")
        raise typer.Exit(code=1) from e

    selected = sort_analyses(filter_analyses(analyses, mode=mode, min_alerts=min_alerts), sort)
    CompactDisplay(console).display_analyses(selected, mode, limit=limit)


@app.command()
def opportunities(
    league: str = typer.Option(None, "--league", "-l", help="League ID (defaults to first)"),
    limit: int = typer.Option(25, "--limit", "-n", help="Rows to show"),
):
    """Rank other managers' players whose buyout protection ends soon"""
    settings = get_settings()
    client = get_client(settings)
    analyzer = LeagueAnalyzer(client, settings)

    try:
        league_id = _resolve_league_id(client, league)
        console.print("[cyan]Scanning opponent rosters...[/cyan]")
        report = analyzer.find_opportunities(league_id)
    except LaLigaAPIError as e:
        console.print(f"[red]✗ Could not load opponent players: {e}[/red]")
        raise typer.Exit(code=1) from e

    CompactDisplay(console).display_opportunities(report, limit=limit)


@app.command()
def trend(player_id: str = typer.Argument(..., help="Player ID")):
    """Show market value trends and momentum for one player"""
    settings = get_settings()
    client = get_client(settings)
    analyzer = LeagueAnalyzer(client, settings)

    try:
        points = analyzer.trends.get_history(player_id)
    except LaLigaAPIError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e

    short, long = analyzer.trends.analyze(points)
    CompactDisplay(console).display_trend(player_id, short, long, calculate_momentum(points))


if __name__ == "__main__":
    app()
