# residency_forms/errors.py
from __future__ import annotations

from typing import Iterable


class ResidencyFormsError(Exception):
    pass


class ConfigError(ResidencyFormsError):
    """Unknown term/document or a malformed placement file."""


class RecordValidationError(ResidencyFormsError):
    def __init__(self, message: str, missing: Iterable[str] = ()):
        super().__init__(message)
        self.missing = list(missing)


class StampingError(ResidencyFormsError):
    """
    Base for everything that aborts one document's generation.
    These are configuration/template mismatches, never transient.
    """


class TemplateFetchError(StampingError):
    pass


class TemplateFormatError(StampingError):
    pass


class PageMismatchError(StampingError):
    def __init__(self, page: int, page_count: int, field: str = ""):
        where = f" for field {field!r}" if field else ""
        super().__init__(
            f"Template has {page_count} page(s) but a placement{where} targets page index {page}"
        )
        self.page = page
        self.page_count = page_count
        self.field = field


class PlacementError(StampingError):
    pass


class UnencodableTextError(RecordValidationError):
    """A value has characters the placement's font cannot draw."""

    def __init__(self, field: str, font: str, chars: Iterable[str]):
        self.field = field
        self.font = font
        self.chars = sorted(set(chars))
        super().__init__(
            f"{field!r} has characters font {font!r} cannot draw: {''.join(self.chars)!r}"
        )
