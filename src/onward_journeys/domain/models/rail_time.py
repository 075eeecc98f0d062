"""Date-aware rail time.

Departure boards report wall-clock "HH:MM" times with no date. Overnight services still
need a strictly ordered call sequence, so every time is resolved against a reference
(normally the previous call's time) with a one-directional rollover rule.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from onward_journeys.domain.errors import ValidationError, ValidationErrorKind

# A time more than this far behind its reference belongs to the next day.
ROLLOVER_THRESHOLD = timedelta(hours=6)


@dataclass(frozen=True, order=True)
class RailTime:
    """A calendar date plus a time of day, ordered by the (date, time) pair."""

    date: date
    time: time

    @classmethod
    def parse_hhmm(cls, raw: str, on_date: date) -> "RailTime":
        """Parse an "HH:MM" string on the given date.

        Raises:
            ValidationError: If the string is not a valid 24-hour "HH:MM" time.
        """
        if len(raw) != 5:
            raise ValidationError(ValidationErrorKind.WRONG_LENGTH, raw, "time")
        hours, sep, minutes = raw[:2], raw[2], raw[3:]
        if sep != ":" or not _is_two_digits(hours) or not _is_two_digits(minutes):
            raise ValidationError(ValidationErrorKind.PATTERN_MISMATCH, raw, "time")
        hour, minute = int(hours), int(minutes)
        if hour > 23 or minute > 59:
            raise ValidationError(ValidationErrorKind.PATTERN_MISMATCH, raw, "time")
        return cls(on_date, time(hour, minute))

    @classmethod
    def from_datetime(cls, value: datetime) -> "RailTime":
        return cls(value.date(), value.time().replace(second=0, microsecond=0))

    @classmethod
    def resolve(cls, raw: str, reference: "RailTime") -> "RailTime":
        """Resolve a bare "HH:MM" against a reference time.

        The candidate is placed on the reference's date. If it would then be more than
        ROLLOVER_THRESHOLD earlier than the reference, it is moved forward one day.
        The correction only ever moves forward.
        """
        candidate = cls.parse_hhmm(raw, reference.date)
        if reference.to_datetime() - candidate.to_datetime() > ROLLOVER_THRESHOLD:
            return cls(candidate.date + timedelta(days=1), candidate.time)
        return candidate

    @classmethod
    def resolve_backwards(cls, raw: str, reference: "RailTime") -> "RailTime":
        """Resolve a time known to come before the reference (the mirror of resolve).

        Used for calls a service made before reaching the board station.
        """
        candidate = cls.parse_hhmm(raw, reference.date)
        if candidate.to_datetime() - reference.to_datetime() > ROLLOVER_THRESHOLD:
            return cls(candidate.date - timedelta(days=1), candidate.time)
        return candidate

    def to_datetime(self) -> datetime:
        return datetime.combine(self.date, self.time)

    def __add__(self, delta: timedelta) -> "RailTime":
        if not isinstance(delta, timedelta):
            return NotImplemented
        return RailTime.from_datetime(self.to_datetime() + delta)

    def __sub__(self, other: "RailTime") -> timedelta:
        if not isinstance(other, RailTime):
            return NotImplemented
        return self.to_datetime() - other.to_datetime()

    def __str__(self) -> str:
        return f"{self.time.hour:02d}:{self.time.minute:02d}"

    def __repr__(self) -> str:
        return f"RailTime({self.date.isoformat()} {self})"


def _is_two_digits(value: str) -> bool:
    return len(value) == 2 and value.isascii() and value.isdigit()


def parse_time_sequence(raw_times: Sequence[str | None], base_date: date) -> list[RailTime | None]:
    """Resolve a forward-ordered sequence of optional "HH:MM" times.

    The first present time is placed on base_date; every later time is resolved against
    the previous resolved one. Missing times stay None and do not break the chain.

    Example: ["23:50", "00:05", "00:40"] resolves to day 0, day 1, day 1.
    """
    resolved: list[RailTime | None] = []
    previous: RailTime | None = None
    for raw in raw_times:
        if raw is None:
            resolved.append(None)
            continue
        current = (
            RailTime.parse_hhmm(raw, base_date)
            if previous is None
            else RailTime.resolve(raw, previous)
        )
        resolved.append(current)
        previous = current
    return resolved


def parse_time_sequence_reverse(
    raw_times: Sequence[str | None], base_date: date
) -> list[RailTime | None]:
    """Resolve a sequence ordered latest-first, stepping back a day across midnight."""
    resolved: list[RailTime | None] = []
    following: RailTime | None = None
    for raw in raw_times:
        if raw is None:
            resolved.append(None)
            continue
        current = (
            RailTime.parse_hhmm(raw, base_date)
            if following is None
            else RailTime.resolve_backwards(raw, following)
        )
        resolved.append(current)
        following = current
    return resolved
