"""Darwin Live Departure Boards adapter."""

from onward_journeys.adapters.darwin_api.board_parser import BoardParseError, DarwinBoardParser
from onward_journeys.adapters.darwin_api.darwin_board_provider import DarwinBoardProvider
from onward_journeys.adapters.darwin_api.http_client import DarwinHttpClient

__all__ = ["BoardParseError", "DarwinBoardParser", "DarwinBoardProvider", "DarwinHttpClient"]
