"""Compact terminal display for analyses and opportunities"""

from rich.console import Console
from rich.table import Table

from .analyzer import ScoredAnalysis, format_millions, recommend_action
from .laliga_client import League, Player
from .opportunity_finder import OpportunityReport
from .scoring import opportunity_score
from .services.trend_service import PlayerMomentum, TrendAnalysis

console = Console()

TREND_STYLES = {
    "rising": "green",
    "falling": "red",
    "stable": "yellow",
    "insufficient_data": "dim",
    "unknown": "dim",
}

TONE_STYLES = {
    "success": "green",
    "info": "blue",
    "warning": "yellow",
    "danger": "red",
    "accent": "magenta",
}

MODE_TITLES = {
    "portfolio": "📊 Portfolio",
    "market": "🛒 Market",
    "buyout": "💎 Buyout Opportunities",
}


def score_style(score: float) -> str:
    if score >= 80:
        return "bold green"
    if score >= 60:
        return "yellow"
    if score >= 40:
        return "dark_orange"
    return "dim"


def format_trend(trend: TrendAnalysis) -> str:
    style = TREND_STYLES.get(trend.trend, "white")
    if not trend.has_data:
        return f"[{style}]{trend.trend.replace('_', ' ')}[/{style}]"
    sign = "+" if trend.change_percent > 0 else ""
    return f"[{style}]{sign}{trend.change_percent:.2f}%[/{style}]"


def format_hours(hours: int | None) -> str:
    if hours is None:
        return "-"
    if hours <= 0:
        return "[red]expired[/red]"
    if hours <= 24:
        return f"[dark_orange]{hours}h[/dark_orange]"
    return f"{-(-hours // 24)}d"


class CompactDisplay:
    """Rich tables for the CLI"""

    def __init__(self, output: Console | None = None):
        self.console = output or console

    def display_leagues(self, leagues: list[League]):
        table = Table(title="Your leagues", show_lines=False)
        table.add_column("ID", style="cyan")
        table.add_column("Name")
        table.add_column("Team", justify="right")
        table.add_column("Money", justify="right")
        table.add_column("Team value", justify="right")

        for league in leagues:
            table.add_row(
                league.id,
                league.name,
                league.team_id,
                format_millions(league.team_money),
                format_millions(league.team_value),
            )
        self.console.print(table)

    def display_analyses(self, analyses: list[ScoredAnalysis], mode: str, limit: int = 30):
        """One row per player with score, trends, protection and suggested action"""
        if not analyses:
            self.console.print("[yellow]No players match the current filters[/yellow]")
            return

        table = Table(title=f"{MODE_TITLES.get(mode, mode)} ({len(analyses)} players)")
        table.add_column("Player", style="bold")
        table.add_column("Pos", justify="center")
        table.add_column("Team")
        table.add_column("Value", justify="right")
        table.add_column("5d", justify="right")
        table.add_column("10d", justify="right")
        table.add_column("Buyout", justify="right")
        table.add_column("Prot.", justify="right")
        table.add_column("Score", justify="right")
        table.add_column("Action")

        for scored in analyses[:limit]:
            analysis = scored.analysis
            action = recommend_action(scored)
            action_text = ""
            if action:
                style = TONE_STYLES.get(action.tone, "white")
                action_text = f"[{style}]{action.icon} {action.title}[/{style}]"

            table.add_row(
                analysis.name,
                analysis.position,
                analysis.team,
                analysis.current_value_formatted,
                format_trend(analysis.trend_5d),
                format_trend(analysis.trend_10d),
                format_millions(analysis.buyout_clause) if analysis.buyout_clause else "-",
                format_hours(analysis.buyout_protection_hours),
                f"[{score_style(scored.score)}]{scored.score}/100[/{score_style(scored.score)}]",
                action_text,
            )

        self.console.print(table)

        alerted = [s for s in analyses[:limit] if s.analysis.alerts]
        if alerted:
            self.console.print("\n[bold]Alerts[/bold]")
            for scored in alerted:
                for alert in scored.analysis.alerts:
                    self.console.print(f"  [dim]{scored.analysis.name}:[/dim] {alert}")

    def display_trend(
        self,
        player_id: str,
        short: TrendAnalysis,
        long: TrendAnalysis,
        momentum: PlayerMomentum,
    ):
        table = Table(title=f"Market value trend for player {player_id}")
        table.add_column("Window")
        table.add_column("Trend")
        table.add_column("Change", justify="right")
        table.add_column("Points", justify="right")
        table.add_column("Summary")

        for label, trend in (("Short", short), ("Long", long)):
            table.add_row(
                label,
                format_trend(trend),
                format_millions(trend.change),
                str(trend.data_points),
                trend.summary,
            )
        self.console.print(table)

        trends = momentum.trends
        self.console.print(
            f"Momentum: [bold]{momentum.momentum_score:+.2f}[/bold] "
            f"(1d {trends.last_1_days:+.2f}% | 3d {trends.last_3_days:+.2f}% | "
            f"7d {trends.last_7_days:+.2f}%)"
        )

    def display_opportunities(self, report: OpportunityReport, limit: int = 25):
        summary = report.summary
        self.console.print(
            f"\n[bold cyan]🎯 Opponent players with protection ending soon: "
            f"{summary.get('total_players', 0)}[/bold cyan]"
        )
        self.console.print(
            f"[dim]Total value {format_millions(summary.get('total_value', 0))} | "
            f"Avg points {summary.get('average_points', 0)} | "
            f"Low buyout {len(report.low_buyout)} | "
            f"Trending up {len(report.trending_up)}[/dim]"
        )

        if not report.players:
            self.console.print("[yellow]No buyout opportunities right now[/yellow]")
            return

        table = Table(title="Best opportunities")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Player", style="bold")
        table.add_column("Owner")
        table.add_column("Value", justify="right")
        table.add_column("Buyout", justify="right")
        table.add_column("Momentum", justify="right")
        table.add_column("Avg pts", justify="right")
        table.add_column("Score", justify="right")

        for i, player in enumerate(report.players[:limit], 1):
            table.add_row(
                str(i),
                player.display_name,
                player.owner.name if player.owner else "-",
                format_millions(player.market_value),
                format_millions(player.buyout_clause) if player.buyout_clause else "-",
                self._momentum(player),
                f"{player.average_points:.1f}",
                f"{opportunity_score(player, report.now):.1f}",
            )
        self.console.print(table)

    @staticmethod
    def _momentum(player: Player) -> str:
        if not player.momentum:
            return "-"
        value = player.momentum.momentum_score
        style = "green" if value > 0 else "red" if value < 0 else "dim"
        return f"[{style}]{value:+.2f}[/{style}]"
