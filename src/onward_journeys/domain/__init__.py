"""Domain layer - core models, errors and ports."""

from onward_journeys.domain.errors import (
    DomainError,
    InvalidAnchor,
    NoRouteFound,
    OnwardJourneysError,
    ProviderUnavailable,
    ValidationError,
    ValidationErrorKind,
)
from onward_journeys.domain.models import (
    Board,
    BoardQuery,
    Crs,
    Journey,
    SearchConfig,
    Service,
)
from onward_journeys.domain.ports import BoardProvider

__all__ = [
    "Board",
    "BoardProvider",
    "BoardQuery",
    "Crs",
    "DomainError",
    "InvalidAnchor",
    "Journey",
    "NoRouteFound",
    "OnwardJourneysError",
    "ProviderUnavailable",
    "SearchConfig",
    "Service",
    "ValidationError",
    "ValidationErrorKind",
]
