"""Constants for the National Rail Knowledgebase stations feed."""

STATIONS_BASE_URL = (
    "https://api1.raildata.org.uk/"
    "1010-nationalrail-knowledgebase-stations-feed-_json_---production5_0"
)
STATIONS_PATH = "/stations"

DEFAULT_TIMEOUT_SECONDS = 30.0

# The station list changes rarely; a day-old copy is good enough
DEFAULT_CACHE_TTL_SECONDS = 24 * 60 * 60
DEFAULT_CACHE_FILE = "stations_cache.json"
