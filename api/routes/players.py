"""Player routes"""

from fastapi import APIRouter, Depends

from api.dependencies import get_cached_settings, get_client, run_sync, upstream_error
from api.models import PlayerTrendResponse
from api.routes.analysis import momentum_response, trend_response
from mercado.config import Settings
from mercado.laliga_client import LaLigaAPIError, LaLigaClient
from mercado.services.trend_service import TrendService, calculate_momentum

router = APIRouter()


@router.get("/{player_id}/trend", response_model=PlayerTrendResponse)
async def get_player_trend(
    player_id: str,
    client: LaLigaClient = Depends(get_client),
    settings: Settings = Depends(get_cached_settings),
):
    """Short and long market value trends plus momentum for one player"""
    service = TrendService(
        client, short_window=settings.short_trend_days, long_window=settings.long_trend_days
    )
    try:
        points = await run_sync(service.get_history, player_id)
    except LaLigaAPIError as e:
        raise upstream_error(e) from e

    short, long = service.analyze(points)
    return PlayerTrendResponse(
        player_id=player_id,
        short=trend_response(short),
        long=trend_response(long),
        momentum=momentum_response(calculate_momentum(points)),
    )
