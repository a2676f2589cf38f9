"""Canonical (row-major, last dimension fastest) index enumeration."""

from __future__ import annotations

import itertools
from collections.abc import Iterator

from .errors import IndexOutOfRange, ShapeError
from .shape import Shape, as_shape
from .values import is_rectangular, is_sequence


def iter_indices(shape) -> Iterator[tuple[int, ...]]:
    """Yield every full index of ``shape`` once, last dimension fastest."""
    extents = as_shape(shape).extents
    return itertools.product(*(range(extent) for extent in extents))


class IndexSpace:
    """Restartable view over all full indices of a shape.

    Every iteration starts a fresh enumeration; the shape is never mutated.
    """

    def __init__(self, shape) -> None:
        self.shape: Shape = as_shape(shape)

    def __iter__(self) -> Iterator[tuple[int, ...]]:
        return iter_indices(self.shape)

    def __len__(self) -> int:
        return self.shape.size

    def __contains__(self, index) -> bool:
        index = tuple(index)
        if len(index) != self.shape.rank:
            return False
        return all(0 <= pos < extent for pos, extent in zip(index, self.shape.extents))

    def __repr__(self) -> str:
        return f"IndexSpace({self.shape.extents})"

    def ravel(self, index) -> int:
        """Position of a full index in canonical order."""
        index = tuple(index)
        if len(index) != self.shape.rank:
            raise IndexOutOfRange(index, dim=min(len(index), self.shape.rank))
        offset = 0
        for dim, (pos, extent) in enumerate(zip(index, self.shape.extents)):
            if not 0 <= pos < extent:
                raise IndexOutOfRange(index, dim=dim, bound=extent)
            offset = offset * extent + pos
        return offset

    def unravel(self, offset: int) -> tuple[int, ...]:
        """Full index at a canonical-order position."""
        size = self.shape.size
        if not 0 <= offset < size:
            raise IndexOutOfRange((offset,), dim=0, bound=size)
        index = [0] * self.shape.rank
        cur = offset
        for dim in range(self.shape.rank - 1, -1, -1):
            extent = self.shape.extents[dim]
            index[dim] = cur % extent
            cur //= extent
        return tuple(index)


def iter_value_indices(value: object, rank: int) -> Iterator[tuple[int, ...]]:
    """Yield the addresses of the leaves a value really holds.

    Ragged rows are only visited up to their own length, so the result can be
    shorter than the enumeration of a padded shape, but it keeps the same
    canonical order.
    """
    if rank == 0:
        yield ()
        return
    if is_rectangular(value):
        if value.ndim < rank:
            raise ShapeError(f"rectangular row of rank {value.ndim} is shallower than the expected {rank} levels")
        yield from iter_indices(value.shape[:rank])
        return
    if not is_sequence(value):
        raise ShapeError(f"leaf {value!r} reached with {rank} levels of nesting still expected")
    for pos, row in enumerate(value):
        for rest in iter_value_indices(row, rank - 1):
            yield (pos, *rest)
