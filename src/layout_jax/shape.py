"""Shape value type and shape discovery for rectangular and jagged arrays."""

from __future__ import annotations

import itertools
import math
import operator
import os
from dataclasses import dataclass
from typing import Final

from .errors import ShapeError
from .values import Layout, is_rectangular, is_sequence

_RAGGED_SHAPE_POLICY: Final[str] = os.environ.get("LAYOUT_JAX_RAGGED_SHAPE", "max").strip().lower()
if _RAGGED_SHAPE_POLICY not in {"max", "uniform"}:
    raise ValueError(f"LAYOUT_JAX_RAGGED_SHAPE must be 'max' or 'uniform', got {_RAGGED_SHAPE_POLICY!r}")
DEFAULT_USE_MAX: Final[bool] = _RAGGED_SHAPE_POLICY == "max"


@dataclass(frozen=True)
class Shape:
    """Per-dimension extents plus the layout they were derived under."""

    extents: tuple[int, ...]
    layout: Layout = Layout.RECTANGULAR

    def __post_init__(self) -> None:
        extents: list[int] = []
        for dim, extent in enumerate(self.extents):
            if isinstance(extent, bool):
                raise ShapeError(f"extent {extent!r} at dimension {dim} is not an integer")
            try:
                extent = operator.index(extent)
            except TypeError as exc:
                raise ShapeError(f"extent {extent!r} at dimension {dim} is not an integer") from exc
            if extent < 0:
                raise ShapeError(f"extent {extent} at dimension {dim} is negative")
            extents.append(extent)
        object.__setattr__(self, "extents", tuple(extents))

    @property
    def rank(self) -> int:
        return len(self.extents)

    @property
    def size(self) -> int:
        return math.prod(self.extents)

    @property
    def is_empty(self) -> bool:
        return self.size == 0

    def __len__(self) -> int:
        return len(self.extents)

    def __iter__(self):
        return iter(self.extents)

    def __getitem__(self, item):
        return self.extents[item]


def as_shape(shape, layout: Layout = Layout.RECTANGULAR) -> Shape:
    if isinstance(shape, Shape):
        return shape
    return Shape(tuple(shape), layout)


def _max_extents(shapes: list[tuple[int, ...]]) -> tuple[int, ...]:
    return tuple(max(dims) for dims in itertools.zip_longest(*shapes, fillvalue=0))


def _extents_of(value: object, deep: bool, use_max: bool) -> tuple[int, ...]:
    if is_rectangular(value):
        return tuple(int(d) for d in value.shape)
    if not is_sequence(value):
        return ()
    outer = len(value)
    if not deep or outer == 0:
        return (outer,)
    if use_max:
        inner = _max_extents([_extents_of(row, deep, use_max) for row in value])
    else:
        inner = _extents_of(value[0], deep, use_max)
    return (outer, *inner)


def shape_of(value: object, deep: bool = True, use_max: bool | None = None) -> Shape:
    """Compute the shape of a rectangular or jagged array.

    Rectangular arrays report their native extents. For jagged arrays a
    shallow shape is just the outer length; a deep shape recurses into the
    first row (``use_max=False``) or takes the per-level maximum over every
    row (``use_max=True``). ``use_max=None`` applies the configured default
    policy. Leaves have shape ``()``.
    """
    if use_max is None:
        use_max = DEFAULT_USE_MAX
    layout = Layout.JAGGED if is_sequence(value) else Layout.RECTANGULAR
    return Shape(_extents_of(value, deep, use_max), layout)
