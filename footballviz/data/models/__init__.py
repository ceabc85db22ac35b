"""
Models for footballviz.

- query: the boolean filter tree, field schema, presets and query stats
- plays: games, plays and the other payloads of the analytics API
- collab: presence, notifications, discussion messages and the shared chart
  configuration
"""

from footballviz.data.models.collab import (
    ActiveUser,
    ChartConfig,
    CursorPosition,
    Message,
    Notification,
)
from footballviz.data.models.plays import (
    AIResponse,
    ChartImage,
    ChartRecommendations,
    DecisionRecommendation,
    Game,
    GameAnalytics,
    LangChainQueryResult,
    LangChainStatus,
    PlayData,
    Team,
    TranslationResult,
    Visualization,
)
from footballviz.data.models.query import (
    ConditionOperator,
    DataType,
    FieldDescriptor,
    FieldOption,
    FieldSchema,
    FilterPreset,
    FilterPresets,
    FlatFilter,
    LogicOperator,
    QueryCondition,
    QueryGroup,
    QueryStats,
    UIType,
    is_condition,
    is_group,
)

__all__ = [
    "ActiveUser",
    "ChartConfig",
    "CursorPosition",
    "Message",
    "Notification",
    "AIResponse",
    "ChartImage",
    "ChartRecommendations",
    "DecisionRecommendation",
    "Game",
    "GameAnalytics",
    "LangChainQueryResult",
    "LangChainStatus",
    "PlayData",
    "Team",
    "TranslationResult",
    "Visualization",
    "ConditionOperator",
    "DataType",
    "FieldDescriptor",
    "FieldOption",
    "FieldSchema",
    "FilterPreset",
    "FilterPresets",
    "FlatFilter",
    "LogicOperator",
    "QueryCondition",
    "QueryGroup",
    "QueryStats",
    "UIType",
    "is_condition",
    "is_group",
]
