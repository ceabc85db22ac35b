"""
Game and play models returned by the analytics API.

PlayData records are frozen: filtering and sorting build new lists and
never touch a fetched record. Unknown keys sent by the backend are kept
(extra="allow") so exports carry every column the server provides.
"""

import base64
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class PlayData(BaseModel):
    """
    One snap with its situation and outcome.

    Examples:
        PlayData(id=1, play_id=1, game_id=7, down=3, distance=4,
                 yard_line=82, formation="Shotgun", play_type="Pass",
                 yards_gained=6, points_scored=0)
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: int
    play_id: int
    game_id: Optional[int] = None
    down: Optional[int] = None
    distance: Optional[int] = None
    yard_line: Optional[int] = None
    formation: Optional[str] = None
    play_type: Optional[str] = None
    play_name: Optional[str] = None
    result_of_play: Optional[str] = None
    yards_gained: int = 0
    points_scored: int = 0
    unit: Optional[str] = None
    quarter: Optional[int] = None
    time_remaining: Optional[str] = None
    game_week: Optional[int] = None
    game_opponent: Optional[str] = None


class Team(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    team_name: str
    email: Optional[str] = None
    created_at: Optional[str] = None


class Game(BaseModel):
    """A game uploaded by a team"""

    model_config = ConfigDict(extra="allow")

    id: int
    team_id: Optional[int] = None
    week: int
    opponent: str
    location: Literal["Home", "Away"] = "Home"
    analytics_focus_notes: Optional[str] = None
    csv_file_path: Optional[str] = None
    submission_timestamp: Optional[str] = None

    @property
    def label(self) -> str:
        return f"Week {self.week} vs {self.opponent} ({self.location})"


class BucketStats(BaseModel):
    count: int = 0
    yards: float = 0
    avg_yards: float = 0


class GameSummary(BaseModel):
    total_plays: int = 0
    total_yards: float = 0
    total_points: float = 0
    avg_yards_per_play: float = 0


class GameAnalytics(BaseModel):
    """Response of GET /consultant/analytics/:gameId"""

    model_config = ConfigDict(extra="allow")

    game: Game
    summary: GameSummary = Field(default_factory=GameSummary)
    play_type_stats: Dict[str, BucketStats] = Field(default_factory=dict)
    formation_stats: Dict[str, BucketStats] = Field(default_factory=dict)
    down_stats: Dict[str, BucketStats] = Field(default_factory=dict)
    plays: List[Dict[str, Any]] = Field(default_factory=list)


class ChartImage(BaseModel):
    """A chart rendered server-side and returned as a base64 PNG"""

    model_config = ConfigDict(extra="allow")

    chart_image: str
    chart_type: str
    plays_analyzed: int = 0

    def png_bytes(self) -> bytes:
        data = self.chart_image
        # Some endpoints return a data URL
        if data.startswith("data:"):
            data = data.split(",", 1)[1]
        return base64.b64decode(data)


class ChartRecommendations(BaseModel):
    model_config = ConfigDict(extra="allow")

    recommendations: List[Dict[str, Any]] = Field(default_factory=list)
    data_summary: Dict[str, Any] = Field(default_factory=dict)


class Visualization(BaseModel):
    """A saved chart; consultant-created ones can be highlighted for the team"""

    model_config = ConfigDict(extra="allow")

    id: int
    team_id: int
    game_id: Optional[int] = None
    created_by_consultant: bool = False
    is_highlighted: bool = False
    chart_type: str
    configuration: Any = None
    title: str
    description: Optional[str] = None
    created_at: Optional[str] = None


class AIResponse(BaseModel):
    response: str
    query: str


class DifficultyAnalysis(BaseModel):
    difficulty: Literal["easy", "medium", "hard"]
    complexity_score: float = 0
    football_terms: int = 0
    word_count: int = 0


class TranslatedFilters(BaseModel):
    conditions: List[Dict[str, Any]] = Field(default_factory=list)
    logic: str = "and"
    confidence: float = 0
    interpretation: str = ""


class TranslationResult(BaseModel):
    """Natural-language question translated into filter conditions"""

    model_config = ConfigDict(extra="allow")

    success: bool
    filters: Optional[TranslatedFilters] = None
    confidence_score: float = 0
    difficulty_analysis: Optional[DifficultyAnalysis] = None
    error_message: Optional[str] = None
    suggested_corrections: List[str] = Field(default_factory=list)


class LangChainQueryResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    success: bool
    response: Optional[str] = None
    analysis: Any = None
    error_message: Optional[str] = None
    data_count: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None


class LangChainStatus(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str
    service_stats: Dict[str, Any] = Field(default_factory=dict)
    capabilities: Dict[str, bool] = Field(default_factory=dict)
    available_workflows: Dict[str, List[str]] = Field(default_factory=dict)
    query_examples: Dict[str, str] = Field(default_factory=dict)


class DecisionAlternative(BaseModel):
    action: str
    wp: float


class DecisionRecommendation(BaseModel):
    """Fourth-down recommendation from the decision service"""

    model_config = ConfigDict(extra="allow")

    recommendation: Literal["GO", "PUNT", "FG"]
    delta_wp: float
    alternatives: List[DecisionAlternative] = Field(default_factory=list)
    rationale: List[str] = Field(default_factory=list)
    uncertainty: Dict[str, Any] = Field(default_factory=dict)
    version: str = ""
