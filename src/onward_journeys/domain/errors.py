"""Domain error types.

Validation failures are raised where a value is constructed and never get past that
boundary. Provider failures are raised by board providers and aggregated by the planner.
"""

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from onward_journeys.domain.models.crs import Crs


class OnwardJourneysError(Exception):
    """Base class for all errors raised by this package."""


class ValidationErrorKind(Enum):
    """Why a raw value was rejected."""

    WRONG_LENGTH = "wrong_length"
    INVALID_CHARACTERS = "invalid_characters"
    PATTERN_MISMATCH = "pattern_mismatch"


class ValidationError(OnwardJourneysError, ValueError):
    """A raw value could not be turned into a validated domain value."""

    def __init__(self, kind: ValidationErrorKind, raw_input: str, type_name: str = "value") -> None:
        self.kind = kind
        self.raw_input = raw_input
        self.type_name = type_name
        super().__init__(f"invalid {type_name} {raw_input!r}: {kind.value}")


class DomainError(OnwardJourneysError):
    """An aggregate (leg, service, journey) would be internally inconsistent."""


class InvalidAnchor(OnwardJourneysError):
    """The planning request does not point at a usable position on a service."""


class ProviderUnavailable(OnwardJourneysError):
    """The board provider failed or returned an error for a station."""

    def __init__(self, station: "Crs | None", reason: str) -> None:
        self.station = station
        self.reason = reason
        where = f" for {station}" if station is not None else ""
        super().__init__(f"board provider unavailable{where}: {reason}")


class NoRouteFound(OnwardJourneysError):
    """The search finished within its budget without reaching the destination."""

    def __init__(self, destination: "Crs", states_expanded: int = 0) -> None:
        self.destination = destination
        self.states_expanded = states_expanded
        super().__init__(
            f"no route found to {destination} after expanding {states_expanded} states"
        )


class StationListUnavailable(OnwardJourneysError):
    """The station list could not be fetched, read or written."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"station list unavailable: {reason}")
