"""Pydantic models for API requests and responses"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator


class MarketValuePointModel(BaseModel):
    """One market value observation"""

    date: datetime
    market_value: int

    @field_validator("date")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        """Bare dates and naive timestamps are taken as UTC"""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class TrendRequest(BaseModel):
    """Market value history to classify"""

    points: list[MarketValuePointModel] = Field(default_factory=list)
    window_size: int = Field(default=5, ge=1)


class TrendResponse(BaseModel):
    """Windowed trend over the most recent points"""

    trend: str
    change: int
    change_percent: float
    data_points: int
    latest_value: int | None = None
    oldest_value: int | None = None
    summary: str


class MomentumTrendsModel(BaseModel):
    """1/3/7-day percent changes"""

    last_1_days: float = 0.0
    last_3_days: float = 0.0
    last_7_days: float = 0.0


class MomentumRequest(BaseModel):
    """Either precomputed trends or a history to compute them from"""

    trends: MomentumTrendsModel | None = None
    points: list[MarketValuePointModel] = Field(default_factory=list)


class MomentumResponse(BaseModel):
    """Momentum blend of short-window trends"""

    trends: MomentumTrendsModel
    momentum_score: float


class ActionResponse(BaseModel):
    """Suggested action for an analysis"""

    icon: str
    title: str
    description: str
    tone: str


class PlayerAnalysisResponse(BaseModel):
    """Scored analysis of one player"""

    player_id: str
    name: str
    position: str
    team: str
    category: str
    mode: str
    score: int
    current_value: int
    current_value_formatted: str
    trend_5d: TrendResponse
    trend_10d: TrendResponse
    alerts: list[str]
    sale_price: int | None = None
    sale_expiration_hours: int | None = None
    buyout_clause: int | None = None
    buyout_protection_hours: int | None = None
    action: ActionResponse | None = None


class OpportunityPlayerResponse(BaseModel):
    """Opponent player ranked as a buyout opportunity"""

    id: str
    name: str
    position: str
    team_name: str
    owner: str | None = None
    market_value: int
    buyout_clause: int | None = None
    buyout_clause_locked_end_time: datetime | None = None
    points: int
    average_points: float
    momentum_score: float | None = None
    opportunity_score: float


class OpportunitiesResponse(BaseModel):
    """Ranked opportunities plus quick-look groupings (player ids)"""

    players: list[OpportunityPlayerResponse]
    low_buyout: list[str]
    expiring_protection: list[str]
    trending_up: list[str]
    summary: dict[str, float]


class PlayerTrendResponse(BaseModel):
    """Short and long trends plus momentum for one player"""

    player_id: str
    short: TrendResponse
    long: TrendResponse
    momentum: MomentumResponse
