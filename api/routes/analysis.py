"""Trend, momentum and league analysis routes"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_cached_settings, get_client, run_sync, upstream_error
from api.models import (
    ActionResponse,
    MomentumRequest,
    MomentumResponse,
    MomentumTrendsModel,
    OpportunitiesResponse,
    OpportunityPlayerResponse,
    PlayerAnalysisResponse,
    TrendRequest,
    TrendResponse,
)
from mercado.analyzer import (
    ANALYSIS_MODES,
    SORT_OPTIONS,
    ScoredAnalysis,
    filter_analyses,
    recommend_action,
    sort_analyses,
)
from mercado.config import Settings
from mercado.laliga_client import LaLigaAPIError, LaLigaClient, Player
from mercado.league_analyzer import LeagueAnalyzer
from mercado.opportunity_finder import SORT_FIELDS, sort_players
from mercado.scoring import opportunity_score
from mercado.services.trend_service import (
    MarketValuePoint,
    MomentumTrends,
    PlayerMomentum,
    TrendAnalysis,
    analyze_trend,
    calculate_momentum,
    momentum_score,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def to_points(request_points) -> list[MarketValuePoint]:
    return [MarketValuePoint(date=p.date, market_value=p.market_value) for p in request_points]


def trend_response(trend: TrendAnalysis) -> TrendResponse:
    return TrendResponse(**trend.to_dict())


def momentum_response(momentum: PlayerMomentum) -> MomentumResponse:
    trends = momentum.trends
    return MomentumResponse(
        trends=MomentumTrendsModel(
            last_1_days=trends.last_1_days,
            last_3_days=trends.last_3_days,
            last_7_days=trends.last_7_days,
        ),
        momentum_score=momentum.momentum_score,
    )


def analysis_response(scored: ScoredAnalysis) -> PlayerAnalysisResponse:
    analysis = scored.analysis
    action = recommend_action(scored)
    return PlayerAnalysisResponse(
        player_id=analysis.player_id,
        name=analysis.name,
        position=analysis.position,
        team=analysis.team,
        category=scored.category.value,
        mode=scored.mode,
        score=scored.score,
        current_value=analysis.current_value,
        current_value_formatted=analysis.current_value_formatted,
        trend_5d=trend_response(analysis.trend_5d),
        trend_10d=trend_response(analysis.trend_10d),
        alerts=analysis.alerts,
        sale_price=analysis.sale_info.sale_price if analysis.sale_info else None,
        sale_expiration_hours=analysis.sale_expiration_hours,
        buyout_clause=analysis.buyout_clause,
        buyout_protection_hours=analysis.buyout_protection_hours,
        action=ActionResponse(**vars(action)) if action else None,
    )


def opportunity_response(player: Player, now: datetime | None = None) -> OpportunityPlayerResponse:
    return OpportunityPlayerResponse(
        id=player.id,
        name=player.display_name,
        position=player.position,
        team_name=player.team_name,
        owner=player.owner.name if player.owner else None,
        market_value=player.market_value,
        buyout_clause=player.buyout_clause,
        buyout_clause_locked_end_time=player.buyout_clause_locked_end_time,
        points=player.points,
        average_points=player.average_points,
        momentum_score=player.momentum.momentum_score if player.momentum else None,
        opportunity_score=round(opportunity_score(player, now), 2),
    )


@router.post("/analysis/trend", response_model=TrendResponse)
async def post_trend(request: TrendRequest):
    """Classify a market value history (no upstream calls)"""
    return trend_response(analyze_trend(to_points(request.points), request.window_size))


@router.post("/analysis/momentum", response_model=MomentumResponse)
async def post_momentum(request: MomentumRequest):
    """Momentum score from given trends, or from a history when no trends are sent"""
    if request.trends is not None:
        trends = MomentumTrends(**request.trends.model_dump())
        momentum = PlayerMomentum(trends=trends, momentum_score=momentum_score(trends))
    else:
        momentum = calculate_momentum(to_points(request.points))
    return momentum_response(momentum)


@router.get("/leagues/{league_id}/analysis", response_model=list[PlayerAnalysisResponse])
async def get_league_analysis(
    league_id: str,
    mode: str = Query("portfolio", description="portfolio, market or buyout"),
    sort_by: str = Query("mode-default", description="Sort option"),
    min_alerts: int = Query(0, ge=0, description="Minimum number of alerts"),
    max_market_players: int | None = Query(None, ge=1, description="Cap on market listings"),
    limit: int = Query(100, ge=1, description="Max results"),
    client: LaLigaClient = Depends(get_client),
    settings: Settings = Depends(get_cached_settings),
):
    """Analyze one category of players in a league"""
    if mode not in ANALYSIS_MODES:
        raise HTTPException(status_code=400, detail=f"Unknown analysis mode: {mode}")
    if sort_by not in SORT_OPTIONS:
        raise HTTPException(status_code=400, detail=f"Unknown sort option: {sort_by}")

    analyzer = LeagueAnalyzer(client, settings)
    try:
        analyses = await run_sync(
            analyzer.analyze_league,
            league_id,
            include_my_players=mode == "portfolio",
            include_market=mode == "market",
            include_other_managers=mode == "buyout",
            max_market_players=max_market_players,
        )
    except LaLigaAPIError as e:
        logger.error("League analysis failed for %s: %s", league_id, e)
        raise upstream_error(e) from e

    selected = sort_analyses(filter_analyses(analyses, mode=mode, min_alerts=min_alerts), sort_by)
    return [analysis_response(scored) for scored in selected[:limit]]


@router.get("/leagues/{league_id}/opportunities", response_model=OpportunitiesResponse)
async def get_opportunities(
    league_id: str,
    sort_by: str | None = Query(None, description=f"One of {', '.join(SORT_FIELDS)}"),
    order: str = Query("desc", description="asc or desc"),
    limit: int = Query(50, ge=1, description="Max results"),
    client: LaLigaClient = Depends(get_client),
    settings: Settings = Depends(get_cached_settings),
):
    """Opponent players whose buyout protection ends soon, best deal first"""
    analyzer = LeagueAnalyzer(client, settings)
    try:
        report = await run_sync(analyzer.find_opportunities, league_id)
    except LaLigaAPIError as e:
        logger.error("Opportunity scan failed for %s: %s", league_id, e)
        raise upstream_error(e) from e

    players = report.players
    if sort_by is not None:
        try:
            players = sort_players(players, sort_by, order)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

    return OpportunitiesResponse(
        players=[opportunity_response(p, report.now) for p in players[:limit]],
        low_buyout=[p.id for p in report.low_buyout],
        expiring_protection=[p.id for p in report.expiring_protection],
        trending_up=[p.id for p in report.trending_up],
        summary=report.summary,
    )
