"""Station code (CRS) domain model."""

from dataclasses import dataclass

from onward_journeys.domain.errors import ValidationError, ValidationErrorKind


@dataclass(frozen=True, order=True)
class Crs:
    """Three-letter Computer Reservation System code identifying a station (e.g. "PAD")."""

    code: str

    def __post_init__(self) -> None:
        if len(self.code) != 3:
            raise ValidationError(ValidationErrorKind.WRONG_LENGTH, self.code, "CRS code")
        if not all("A" <= c <= "Z" for c in self.code):
            raise ValidationError(ValidationErrorKind.INVALID_CHARACTERS, self.code, "CRS code")

    @classmethod
    def parse(cls, raw: str) -> "Crs":
        """Parse a station code, normalising it to uppercase.

        Args:
            raw: Raw code, e.g. "pad" or "PAD".

        Returns:
            The validated station code.

        Raises:
            ValidationError: If the code is not exactly three ASCII letters.
        """
        if len(raw) != 3:
            raise ValidationError(ValidationErrorKind.WRONG_LENGTH, raw, "CRS code")
        if not raw.isascii() or not raw.isalpha():
            raise ValidationError(ValidationErrorKind.INVALID_CHARACTERS, raw, "CRS code")
        return cls(raw.upper())

    def __str__(self) -> str:
        return self.code
