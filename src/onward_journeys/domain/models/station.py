"""Station domain model."""

from dataclasses import dataclass

from onward_journeys.domain.models.crs import Crs


@dataclass(frozen=True)
class Station:
    """A station's code and its display name."""

    crs: Crs
    name: str
