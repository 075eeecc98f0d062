"""Ports (interfaces) for the ports-and-adapters architecture."""

from onward_journeys.domain.ports.board_provider import BoardProvider
from onward_journeys.domain.ports.station_list_provider import StationListProvider

__all__ = ["BoardProvider", "StationListProvider"]
