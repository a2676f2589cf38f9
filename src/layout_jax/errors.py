"""Structured error types for layout and element conversion failures."""

from __future__ import annotations

import decimal
from dataclasses import dataclass


class LayoutError(Exception):
    """Base class for structured layout-jax errors."""


@dataclass(frozen=True)
class IndexOutOfRange(LayoutError, IndexError):
    """An index position exceeds the bound of the dimension it addresses."""

    index: tuple[int, ...]
    dim: int
    bound: int | None = None

    def __str__(self) -> str:
        if self.bound is None:
            return f"index {self.index} has too many positions (dimension {self.dim} does not exist)"
        return f"index {self.index} is out of range at dimension {self.dim} (extent {self.bound})"


class ShapeError(LayoutError, ValueError):
    """Invalid extents or inconsistent nesting depth."""


@dataclass(frozen=True)
class ConversionError(LayoutError, ValueError):
    """A leaf cannot be represented in the requested element kind."""

    value: object
    target: str
    reason: str = ""

    def __str__(self) -> str:
        reason = f": {self.reason}" if self.reason else ""
        return f"cannot convert {self.value!r} ({type(self.value).__name__}) to {self.target}{reason}"


def classify_conversion_exception(err: Exception, *, value: object, target: str) -> ConversionError:
    """Map stdlib parse/cast failures onto ConversionError."""
    if isinstance(err, ConversionError):
        return err
    if isinstance(err, decimal.InvalidOperation):
        return ConversionError(value, target, "not a valid decimal")
    if isinstance(err, OverflowError):
        return ConversionError(value, target, "value is not finite")
    if isinstance(err, ValueError):
        return ConversionError(value, target, str(err) or "invalid literal")
    return ConversionError(value, target, str(err) or type(err).__name__)
