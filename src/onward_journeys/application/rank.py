"""Deduplication and ordering of completed journeys."""

from collections.abc import Iterable
from datetime import timedelta

from onward_journeys.domain.models.journey import Journey

# A journey without a change has no interchange to miss
_NO_CHANGE_MARGIN = timedelta.max


def _margin(journey: Journey) -> timedelta:
    margin = journey.min_interchange_margin
    return _NO_CHANGE_MARGIN if margin is None else margin


def _is_better_duplicate(candidate: Journey, current: Journey) -> bool:
    """Larger minimum margin wins; on a tie, the earlier arrival."""
    candidate_margin, current_margin = _margin(candidate), _margin(current)
    if candidate_margin != current_margin:
        return candidate_margin > current_margin
    return candidate.arrival_time < current.arrival_time


def deduplicate(journeys: Iterable[Journey]) -> list[Journey]:
    """Keep one journey per route signature.

    Two journeys are duplicates when every segment has the same endpoints and the same
    train identity (or is a walk), whatever their exact times.
    """
    best: dict[tuple, Journey] = {}
    for journey in journeys:
        key = journey.signature
        current = best.get(key)
        if current is None or _is_better_duplicate(journey, current):
            best[key] = journey
    return list(best.values())


def rank_journeys(journeys: Iterable[Journey], max_results: int | None = None) -> list[Journey]:
    """Deduplicate, then order by arrival, changes, and widest margin.

    Args:
        journeys: Completed journeys in discovery order.
        max_results: Keep only the best N when set.
    """
    ranked = sorted(
        deduplicate(journeys),
        key=lambda j: (j.arrival_time, j.change_count, -_margin(j).total_seconds()),
    )
    if max_results is not None:
        ranked = ranked[:max_results]
    return ranked



def _dominates(better: Journey, worse: Journey) -> bool:
    """No later, no more changes, no longer, and strictly ahead on at least one of them."""
    at_least_as_good = (
        better.arrival_time <= worse.arrival_time
        and better.change_count <= worse.change_count
        and better.total_duration <= worse.total_duration
    )
    strictly_better = (
        better.arrival_time < worse.arrival_time
        or better.change_count < worse.change_count
        or better.total_duration < worse.total_duration
    )
    return at_least_as_good and strictly_better


def remove_dominated(journeys: Iterable[Journey]) -> list[Journey]:
    """Drop every journey another one beats on arrival, changes and duration alike.

    Journeys that tie on all three are kept; deduplicate decides between those.
    """
    kept: list[Journey] = []
    for journey in journeys:
        if any(_dominates(existing, journey) for existing in kept):
            continue
        kept = [existing for existing in kept if not _dominates(journey, existing)]
        kept.append(journey)
    return kept
