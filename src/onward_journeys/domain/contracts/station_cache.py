"""Protocol for persisting the station list between runs."""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from onward_journeys.domain.models.station import Station


class StationCacheProtocol(Protocol):
    """Protocol for a long-lived store of the last fetched station list."""

    def load(self) -> "list[Station] | None":
        """Return the stored stations, or None when there are none fresh enough."""
        ...

    def save(self, stations: "list[Station]") -> None:
        """Store the stations.

        Raises:
            StationListUnavailable: If they could not be stored.
        """
        ...
