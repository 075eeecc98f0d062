"""Train operator (ATOC) code domain model."""

from dataclasses import dataclass

from onward_journeys.domain.errors import ValidationError, ValidationErrorKind


@dataclass(frozen=True)
class AtocCode:
    """Two-letter code of the operating company, e.g. "GW" or "XC"."""

    code: str

    def __post_init__(self) -> None:
        if len(self.code) != 2:
            raise ValidationError(ValidationErrorKind.WRONG_LENGTH, self.code, "ATOC code")
        if not all("A" <= c <= "Z" for c in self.code):
            raise ValidationError(ValidationErrorKind.INVALID_CHARACTERS, self.code, "ATOC code")

    @classmethod
    def parse(cls, raw: str) -> "AtocCode":
        """Parse an operator code, normalising it to uppercase."""
        if len(raw) != 2:
            raise ValidationError(ValidationErrorKind.WRONG_LENGTH, raw, "ATOC code")
        if not raw.isascii() or not raw.isalpha():
            raise ValidationError(ValidationErrorKind.INVALID_CHARACTERS, raw, "ATOC code")
        return cls(raw.upper())

    def __str__(self) -> str:
        return self.code
