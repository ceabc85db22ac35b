"""
HTTP clients for the football analytics backend.

ApiClient carries auth, timeouts, concurrency limits and error mapping;
each service wraps one group of endpoints.
"""

from footballviz.api.assistant import AssistantService
from footballviz.api.client import ApiClient, DownloadedFile, filename_from_disposition
from footballviz.api.consultant import ConsultantService
from footballviz.api.decision import DecisionService
from footballviz.api.filters import FilterService
from footballviz.api.games import GameService, validate_csv_path
from footballviz.api.reports import ReportService
from footballviz.api.visualizations import VisualizationService

__all__ = [
    "ApiClient",
    "AssistantService",
    "ConsultantService",
    "DecisionService",
    "DownloadedFile",
    "FilterService",
    "GameService",
    "ReportService",
    "VisualizationService",
    "filename_from_disposition",
    "validate_csv_path",
]
