"""Read and write single elements or sub-arrays of either layout."""

from __future__ import annotations

import operator

from .errors import IndexOutOfRange, LayoutError
from .values import is_rectangular, is_sequence, wide_types

NOT_FOUND = object()


def _as_index(index) -> tuple[int, ...]:
    if isinstance(index, tuple):
        return tuple(operator.index(pos) for pos in index)
    if isinstance(index, list):
        return tuple(operator.index(pos) for pos in index)
    return (operator.index(index),)


def _check_position(full_index: tuple[int, ...], dim: int, extent: int) -> int:
    pos = full_index[dim]
    if not 0 <= pos < extent:
        raise IndexOutOfRange(full_index, dim=dim, bound=extent)
    return pos


def _get_rectangular(value, full_index: tuple[int, ...], offset: int):
    index = full_index[offset:]
    if len(index) > value.ndim:
        raise IndexOutOfRange(full_index, dim=offset + value.ndim)
    for dim, extent in enumerate(value.shape[: len(index)]):
        _check_position(full_index, offset + dim, int(extent))
    # jax clamps out-of-bounds reads, so bounds are checked above.
    return value[index]


def _get_deep(value, full_index: tuple[int, ...], offset: int):
    if offset == len(full_index):
        return value
    if is_rectangular(value):
        return _get_rectangular(value, full_index, offset)
    if not is_sequence(value):
        raise IndexOutOfRange(full_index, dim=offset)
    row = value[_check_position(full_index, offset, len(value))]
    return _get_deep(row, full_index, offset + 1)


@wide_types
def get_value(value, index, *, deep: bool = True):
    """Read the element or sub-array at ``index``.

    A partial index on a jagged value returns the addressed row as-is. With
    ``deep=False`` only the first position is applied.
    """
    full_index = _as_index(index)
    if is_rectangular(value):
        return _get_rectangular(value, full_index, 0)
    if not is_sequence(value):
        raise IndexOutOfRange(full_index, dim=0)
    if not deep:
        if not full_index:
            return value
        return value[_check_position(full_index, 0, len(value))]
    return _get_deep(value, full_index, 0)


def try_get_value(value, index, *, upper_bound=None, default=NOT_FOUND):
    """Like get_value, but report ``default`` instead of raising.

    ``upper_bound`` holds inclusive per-dimension limits checked before the
    read, for callers that assume a shape the rows may not reach.
    """
    full_index = _as_index(index)
    if upper_bound is not None:
        for pos, bound in zip(full_index, upper_bound):
            if not 0 <= pos <= bound:
                return default
    try:
        return get_value(value, full_index, deep=True)
    except IndexOutOfRange:
        return default


def _set_rectangular(target, new_value, full_index: tuple[int, ...], offset: int):
    index = full_index[offset:]
    if len(index) > target.ndim:
        raise IndexOutOfRange(full_index, dim=offset + target.ndim)
    for dim, extent in enumerate(target.shape[: len(index)]):
        _check_position(full_index, offset + dim, int(extent))
    # Out-of-bounds .at[] updates are dropped silently, so bounds are checked above.
    return target.at[index].set(new_value)


def _set_row(target, pos: int, new_value) -> None:
    if not isinstance(target, list):
        raise LayoutError(f"cannot write into immutable row of type {type(target).__name__}")
    target[pos] = new_value


def _set_deep(target, new_value, full_index: tuple[int, ...], offset: int):
    if is_rectangular(target):
        return _set_rectangular(target, new_value, full_index, offset)
    if not is_sequence(target):
        raise IndexOutOfRange(full_index, dim=offset)
    pos = _check_position(full_index, offset, len(target))
    if offset + 1 == len(full_index):
        _set_row(target, pos, new_value)
        return target
    row = target[pos]
    updated = _set_deep(row, new_value, full_index, offset + 1)
    if updated is not row:
        _set_row(target, pos, updated)
    return target


@wide_types
def set_value(target, new_value, index, *, deep: bool = True):
    """Write ``new_value`` at ``index`` and return the updated container.

    Jagged targets are updated in place and returned. Rectangular targets
    (and rectangular rows inside a jagged target) are immutable jax arrays,
    so the write produces a new array; for a top-level rectangular target
    the new array is returned.
    """
    full_index = _as_index(index)
    if not full_index:
        raise IndexOutOfRange(full_index, dim=0)
    if is_rectangular(target):
        return _set_rectangular(target, new_value, full_index, 0)
    if not is_sequence(target):
        raise IndexOutOfRange(full_index, dim=0)
    if not deep:
        _set_row(target, _check_position(full_index, 0, len(target)), new_value)
        return target
    return _set_deep(target, new_value, full_index, 0)
