"""
Report generation and game data exports.

Report bodies (PDF, Excel, CSV, JSON) are produced server-side; this module
only downloads them and keeps the filename the server suggests.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from footballviz.api.client import ApiClient, DownloadedFile

logger = logging.getLogger(__name__)

REPORT_FORMATS = ("pdf", "excel")
EXPORT_FORMATS = ("csv", "json", "excel")


def _check_format(fmt: str, allowed: Sequence[str]) -> None:
    if fmt not in allowed:
        raise ValueError(f"Unsupported format '{fmt}' (expected one of: {', '.join(allowed)})")


class ReportService:
    def __init__(self, client: ApiClient):
        self.client = client

    async def team_report(
        self,
        team_id: int,
        format: str = "pdf",
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> DownloadedFile:
        """
        Download a team report.

        Args:
            team_id: Team to report on
            format: pdf / excel
            start_date: Optional ISO date lower bound
            end_date: Optional ISO date upper bound
        """
        _check_format(format, REPORT_FORMATS)
        return await self.client.download(
            f"/reports/team/{team_id}",
            default_filename=f"team_report.{format}",
            params={"format": format, "start_date": start_date, "end_date": end_date},
        )

    async def consultant_report(
        self, consultant_id: int, team_ids: Sequence[int], format: str = "pdf"
    ) -> DownloadedFile:
        """
        Download a multi-team report.

        Raises:
            ValueError: If no team is selected
        """
        _check_format(format, REPORT_FORMATS)
        if not team_ids:
            raise ValueError("Select at least one team")
        return await self.client.download(
            f"/reports/consultant/{consultant_id}",
            default_filename=f"consultant_report.{format}",
            method="POST",
            json={"team_ids": [int(team_id) for team_id in team_ids], "format": format},
        )

    async def export_game_data(self, game_id: int, format: str = "csv") -> DownloadedFile:
        _check_format(format, EXPORT_FORMATS)
        return await self.client.download(
            f"/exports/game-data/{game_id}",
            default_filename=f"game_data.{format}",
            params={"format": format},
        )

    @staticmethod
    def save(file: DownloadedFile, directory: Union[str, Path] = ".") -> Path:
        return file.save(directory)
