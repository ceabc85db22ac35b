"""
Game endpoints: listing, detail, plays and CSV upload.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from footballviz.api.client import ApiClient, parse_model, parse_models, payload_field
from footballviz.data.models.plays import Game, PlayData
from footballviz.errors import FileValidationError

logger = logging.getLogger(__name__)

LOCATIONS = ("Home", "Away")


def validate_csv_path(csv_path: Union[str, Path]) -> Path:
    """
    Client-side check run before any upload request.

    Raises:
        FileValidationError: If the file is not a .csv or does not exist
    """
    path = Path(csv_path)
    if path.suffix.lower() != ".csv":
        raise FileValidationError(
            "Please select a CSV file", details={"path": str(path)}
        )
    if not path.is_file():
        raise FileValidationError(
            f"File not found: {path}", details={"path": str(path)}
        )
    return path


class GameService:
    def __init__(self, client: ApiClient):
        self.client = client

    async def list_games(self) -> List[Game]:
        return parse_models(Game, await self.client.get("/games"), "/games", "games")

    async def get_game(self, game_id: int) -> Game:
        endpoint = f"/games/{game_id}"
        data = await self.client.get(endpoint)
        return parse_model(Game, payload_field(data, "game", endpoint), endpoint)

    async def get_game_plays(self, game_id: int) -> List[PlayData]:
        endpoint = f"/games/{game_id}/plays"
        return parse_models(PlayData, await self.client.get(endpoint), endpoint, "plays")

    async def upload_game(
        self,
        week: int,
        opponent: str,
        location: str,
        csv_path: Union[str, Path],
        analytics_focus_notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Upload a game's play-by-play CSV.

        Args:
            week: Week number
            opponent: Opponent name
            location: Home / Away
            csv_path: Path to the CSV export
            analytics_focus_notes: Optional notes for the consultant

        Returns:
            Backend response (message plus the created game)

        Raises:
            FileValidationError: Before any request, for a non-.csv or missing file
        """
        path = validate_csv_path(csv_path)
        if location not in LOCATIONS:
            raise ValueError(f"location must be one of {', '.join(LOCATIONS)}")

        data = {
            "week": str(week),
            "opponent": opponent,
            "location": location,
            "analytics_focus_notes": analytics_focus_notes or None,
        }
        with path.open("rb") as fh:
            result = await self.client.post_multipart(
                "/games", data=data, files={"csv_file": (path.name, fh, "text/csv")}
            )
        logger.info(f"Uploaded week {week} vs {opponent} from {path.name}")
        return result
