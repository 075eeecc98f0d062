"""Constants for the Darwin Live Departure Boards adapter.

Uses the Rail Data Marketplace LDBWS REST API (GetDepBoardWithDetails and
GetArrBoardWithDetails). The two boards are separate products with separate API keys,
each sent in the x-apikey header.
"""

DARWIN_BASE_URL = "https://api1.raildata.org.uk/1010-live-departure-board-dep1_2/LDBWS"
DARWIN_API_VERSION = "20220120"
DEPARTURE_BOARD_PATH = f"/api/{DARWIN_API_VERSION}/GetDepBoardWithDetails"

DARWIN_ARRIVALS_BASE_URL = "https://api1.raildata.org.uk/1010-live-arrival-board-arr/LDBWS"
ARRIVAL_BOARD_PATH = f"/api/{DARWIN_API_VERSION}/GetArrBoardWithDetails"

API_KEY_HEADER = "x-apikey"

DEFAULT_HEADERS = {
    "Accept": "application/json",
}

# Darwin caps numRows at 150; the default board is much shorter
DEFAULT_NUM_ROWS = 50

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_CONCURRENT = 5

# Minimum delay between Darwin requests (in seconds), shared by all clients
DARWIN_API_MIN_DELAY_SECONDS = 0.2

# Status strings Darwin uses in place of an estimated time
ON_TIME = "On time"
NO_ESTIMATE = frozenset({"Cancelled", "Delayed", ""})
