"""Station list provider port."""

from typing import Protocol

from onward_journeys.domain.models.station import Station


class StationListProvider(Protocol):
    """Port for fetching the full list of stations with their names."""

    async def fetch_stations(self) -> list[Station]:
        """Fetch every known station.

        Raises:
            StationListUnavailable: If the list could not be fetched.
        """
        ...
