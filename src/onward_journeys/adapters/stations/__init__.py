"""Station list adapters: the Knowledgebase stations feed and its file cache."""

from onward_journeys.adapters.stations.http_client import StationsHttpClient, parse_station_list
from onward_journeys.adapters.stations.station_file_cache import StationFileCache

__all__ = ["StationFileCache", "StationsHttpClient", "parse_station_list"]
