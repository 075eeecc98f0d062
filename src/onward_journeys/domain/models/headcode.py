"""Train headcode domain model."""

from dataclasses import dataclass

from onward_journeys.domain.errors import ValidationError, ValidationErrorKind


@dataclass(frozen=True)
class Headcode:
    """Four-character train reporting number, e.g. "1A23".

    Identifies one scheduled train for a given day: class digit, route letter, two digits.
    """

    code: str

    def __post_init__(self) -> None:
        if len(self.code) != 4:
            raise ValidationError(ValidationErrorKind.WRONG_LENGTH, self.code, "headcode")
        class_digit, route_letter, first, second = self.code
        if not (
            class_digit.isdigit()
            and class_digit.isascii()
            and "A" <= route_letter <= "Z"
            and first.isascii()
            and first.isdigit()
            and second.isascii()
            and second.isdigit()
        ):
            raise ValidationError(ValidationErrorKind.PATTERN_MISMATCH, self.code, "headcode")

    @classmethod
    def parse(cls, raw: str) -> "Headcode":
        """Parse a headcode, normalising the route letter to uppercase."""
        if len(raw) != 4:
            raise ValidationError(ValidationErrorKind.WRONG_LENGTH, raw, "headcode")
        return cls(raw.upper())

    @classmethod
    def from_rsid(cls, rsid: str | None) -> "Headcode | None":
        """Extract a headcode from a retail service id such as "GW123400".

        Returns None when the RSID is missing or its headcode slice is not a headcode.
        """
        if not rsid or len(rsid) < 6:
            return None
        try:
            return cls.parse(rsid[2:6])
        except ValidationError:
            return None

    @property
    def class_digit(self) -> str:
        return self.code[0]

    @property
    def route_letter(self) -> str:
        return self.code[1]

    def __str__(self) -> str:
        return self.code
