"""Deep flattening of jagged arrays into canonical linear order, and back."""

from __future__ import annotations

import math

import jax.numpy as jnp

from .accessor import NOT_FOUND
from .errors import ShapeError
from .shape import as_shape, shape_of
from .values import ElementKind, JaggedArray, Layout, is_rectangular, is_sequence, wide_types


def _collect(value, extents: tuple[int, ...], out: list, fill) -> None:
    if not extents:
        out.append(value)
        return
    if is_rectangular(value):
        if value.ndim < len(extents):
            raise ShapeError(f"rectangular row of rank {value.ndim} is shallower than {len(extents)} levels")
    elif not is_sequence(value):
        raise ShapeError(f"leaf {value!r} reached with {len(extents)} levels of nesting still expected")
    inner = extents[1:]
    rows = value[: extents[0]]
    for row in rows:
        _collect(row, inner, out, fill)
    if fill is not NOT_FOUND:
        missing = extents[0] - len(rows)
        out.extend([fill] * (max(missing, 0) * math.prod(inner)))


def _flatten_rectangular(value, extents: tuple[int, ...], fill):
    rank = len(extents)
    if rank > value.ndim:
        raise ShapeError(f"shape of rank {rank} is deeper than an array of rank {value.ndim}")
    clipped = value[tuple(slice(0, extent) for extent in extents)]
    if fill is not NOT_FOUND:
        widths = [(0, extent - have) for extent, have in zip(extents, clipped.shape)]
        widths += [(0, 0)] * (value.ndim - rank)
        clipped = jnp.pad(clipped, widths, constant_values=fill)
    return clipped.reshape((math.prod(clipped.shape[:rank]), *value.shape[rank:]))


@wide_types
def flatten(value, shape=None, *, fill=NOT_FOUND):
    """Return the leaves of ``value`` in canonical order.

    Traversal stops at ``shape.rank`` levels and never goes past
    ``shape``: positions beyond an extent are skipped, so every item
    corresponds to an index that ``IndexSpace(shape)`` visits. Rows shorter
    than ``shape`` contribute fewer items unless ``fill`` is given, in which
    case they are padded so the result has ``shape.size`` items.

    Rectangular input returns a jax array: raveled natively when ``shape``
    is omitted, otherwise clipped (and padded) to ``shape`` and collapsed
    over its leading ``shape.rank`` dimensions. Jagged input returns a list,
    walked down to the deep max shape when ``shape`` is omitted.
    """
    if is_rectangular(value):
        if shape is None:
            return jnp.ravel(value)
        return _flatten_rectangular(value, as_shape(shape).extents, fill)
    if not is_sequence(value):
        raise ShapeError(f"cannot flatten leaf {value!r}")
    extents = (shape_of(value, deep=True, use_max=True) if shape is None else as_shape(shape)).extents
    out: list = []
    _collect(value, extents, out, fill)
    return out


def unflatten(flat, shape, *, element_kind: ElementKind | None = None) -> JaggedArray:
    """Rebuild a JaggedArray of ``shape`` from canonical-order leaves."""
    shape = as_shape(shape, Layout.JAGGED)
    if shape.rank == 0:
        raise ShapeError("cannot unflatten into a rank-0 shape")
    items = list(flat)
    if len(items) != shape.size:
        raise ShapeError(f"{len(items)} leaves do not fill shape {shape.extents} of size {shape.size}")

    def build(start: int, dim: int) -> JaggedArray:
        extent = shape.extents[dim]
        if dim == shape.rank - 1:
            return JaggedArray(items[start : start + extent], element_kind)
        stride = math.prod(shape.extents[dim + 1 :])
        return JaggedArray((build(start + pos * stride, dim + 1) for pos in range(extent)), element_kind)

    return build(0, 0)
