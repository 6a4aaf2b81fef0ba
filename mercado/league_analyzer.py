"""League-wide analysis runs"""

import logging
import time
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone

from .analyzer import (
    PlayerCategory,
    ScoredAnalysis,
    build_player_analysis,
    score_analysis,
    sort_analyses,
)
from .config import Settings, get_settings
from .laliga_client import LaLigaAPIError, LaLigaClient, MarketListing, Player
from .opportunity_finder import OpportunityReport, players_with_expiring_protection
from .services.trend_service import TrendService

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class LeagueAnalyzer:
    """Fetches a league's players one by one and scores each of them once"""

    def __init__(
        self,
        client: LaLigaClient,
        settings: Settings | None = None,
        trend_service: TrendService | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.settings = settings or get_settings()
        self.trends = trend_service or TrendService(
            client,
            short_window=self.settings.short_trend_days,
            long_window=self.settings.long_trend_days,
        )
        self.sleep = sleep

    def analyze_league(
        self,
        league_id: str,
        include_my_players: bool = True,
        include_market: bool = True,
        include_other_managers: bool = True,
        max_market_players: int | None = None,
        now: datetime | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> list[ScoredAnalysis]:
        """
        Analyze your squad, the official market and other managers' listings

        Args:
            league_id: League ID
            include_my_players: Score your own squad (portfolio)
            include_market: Score official market listings
            include_other_managers: Score other managers' listings (buyout)
            max_market_players: Cap on market listings (defaults to settings)
            now: Reference time for sale and protection windows
            on_progress: Called with (done, total) after each player

        Returns:
            Analyses sorted by score, highest first
        """
        now = now or datetime.now(timezone.utc)
        limit = max_market_players or self.settings.max_market_players

        league = self.client.get_league(league_id)
        squad = self.client.get_team(league.team_id)
        my_player_ids = {p.id for p in squad}

        listings = self.client.get_market(league_id)[:limit]
        official = [x for x in listings if x.is_official()] if include_market else []
        from_managers = (
            [x for x in listings if x.is_from_manager()] if include_other_managers else []
        )

        my_players = squad if include_my_players else []
        total = len(my_players) + len(official) + len(from_managers)
        done = 0
        logger.info(
            "Analyzing league %s: %d own, %d market, %d other managers",
            league.name or league_id,
            len(my_players),
            len(official),
            len(from_managers),
        )

        def tick():
            nonlocal done
            done += 1
            if on_progress:
                on_progress(done, total)

        results: list[ScoredAnalysis] = []

        for player in my_players:
            tick()
            self._collect(results, player, PlayerCategory.MY_PLAYER, now)

        for listing in official:
            tick()
            if listing.player.id in my_player_ids:
                continue
            self._collect(results, listing.player, PlayerCategory.MARKET_PLAYER, now)

        # Buyout clauses only appear on team rosters, so gather them before scoring
        rosters = self.collect_rosters(league_id) if from_managers else {}

        for listing in from_managers:
            tick()
            if listing.player.id in my_player_ids:
                continue
            player = self._with_roster_data(listing, rosters.get(listing.player.id))
            self._collect(results, player, PlayerCategory.OTHER_MANAGER_PLAYER, now)

        return sort_analyses(results)

    def analyze_player(
        self, player: Player, category: PlayerCategory, now: datetime | None = None
    ) -> ScoredAnalysis | None:
        """
        Fetch history and current value for one player, then score it

        Returns None for non-owned players when neither history nor player
        info could be fetched.
        """
        history = self._fetch_optional(self.trends.get_history, player.id, "history")
        info = self._fetch_optional(self.client.get_player_info, player.id, "player info")

        if history is None and info is None and category != PlayerCategory.MY_PLAYER:
            return None

        current_value = (info or {}).get("marketValue") or player.market_value
        analysis = build_player_analysis(
            player,
            history or [],
            category,
            now=now,
            current_value=current_value,
            short_window=self.trends.short_window,
            long_window=self.trends.long_window,
        )
        return score_analysis(analysis, category)

    def collect_rosters(
        self, league_id: str, exclude_team_id: str | None = None
    ) -> dict[str, Player]:
        """Map player id -> roster entry (with buyout data and owner) for every team"""
        index: dict[str, Player] = {}
        for standing in self.client.get_league_ranking(league_id):
            if exclude_team_id and standing.team_id == exclude_team_id:
                continue
            try:
                roster = self.client.get_league_team(
                    league_id, standing.team_id, owner=standing.owner()
                )
            except LaLigaAPIError as e:
                logger.error("Failed to fetch team %s: %s", standing.team_id, e)
                continue
            finally:
                self._pause(self.settings.team_request_delay_seconds)

            for player in roster:
                index[player.id] = player
        return index

    def find_opportunities(self, league_id: str, now: datetime | None = None) -> OpportunityReport:
        """
        Rank other managers' players whose buyout protection is about to end

        Momentum is fetched only for those players.
        """
        now = now or datetime.now(timezone.utc)
        league = self.client.get_league(league_id)
        rosters = self.collect_rosters(league_id, exclude_team_id=league.team_id)

        expiring = players_with_expiring_protection(list(rosters.values()), now)
        logger.info("%d opponent players with protection ending soon", len(expiring))

        for player in expiring:
            self.trends.enrich_with_momentum([player])
            self._pause(self.settings.request_delay_seconds)

        return OpportunityReport.build(expiring, now)

    def _collect(
        self,
        results: list[ScoredAnalysis],
        player: Player,
        category: PlayerCategory,
        now: datetime,
    ) -> None:
        try:
            scored = self.analyze_player(player, category, now)
        except Exception as e:
            logger.error("Failed to analyze player %s: %s", player.display_name, e)
            scored = None

        if scored is not None:
            results.append(scored)
        self._pause(self.settings.request_delay_seconds)

    @staticmethod
    def _with_roster_data(listing: MarketListing, roster_player: Player | None) -> Player:
        if roster_player is None:
            return listing.player
        return replace(
            listing.player,
            buyout_clause=roster_player.buyout_clause,
            buyout_clause_locked_end_time=roster_player.buyout_clause_locked_end_time,
            owner=roster_player.owner,
        )

    def _fetch_optional(self, fetch, player_id: str, what: str):
        try:
            return fetch(player_id)
        except LaLigaAPIError as e:
            logger.warning("Could not fetch %s for player %s: %s", what, player_id, e)
            return None

    def _pause(self, seconds: float) -> None:
        if seconds > 0:
            self.sleep(seconds)
