"""Layout and element-type conversion for arrays of any rank.

Three cases are handled:

- jagged -> rectangular: allocate for the deep shape of the source (the
  per-level maximum under the default policy), then copy every leaf the
  source really holds. Cells that short rows never reach keep the element
  kind's default value.
- rectangular -> jagged: allocate nested rows matching the source extents
  exactly and copy every element.
- same layout: rectangular arrays are copied element by element; jagged
  arrays are walked one level and every row that is itself a container is
  converted recursively, keeping that row's own layout.
"""

from __future__ import annotations

import decimal
import enum
import logging
import math
from collections.abc import Callable

import jax
import jax.numpy as jnp

from .accessor import get_value, set_value
from .errors import ConversionError, ShapeError, classify_conversion_exception
from .indexing import IndexSpace, iter_value_indices
from .shape import Shape, shape_of
from .values import (
    ElementKind,
    JaggedArray,
    Layout,
    innermost_element_type,
    is_container,
    layout_of,
    wide_types,
    x64_enabled,
)

_log = logging.getLogger(__name__)

ElementConverter = Callable[[object], object]


def _normalize_leaf(leaf: object, kind: ElementKind) -> object:
    if isinstance(leaf, jax.Array):
        if leaf.ndim != 0:
            raise ConversionError(leaf, kind.value, "expected a scalar leaf")
        return leaf.item()
    if getattr(leaf, "shape", None) == () and hasattr(leaf, "item"):
        # numpy scalars
        return leaf.item()
    if isinstance(leaf, enum.Enum):
        underlying = leaf.value
        if isinstance(underlying, bool) or not isinstance(underlying, int):
            raise ConversionError(leaf, kind.value, "enum members convert through an integer value")
        return underlying
    return leaf


def _wrap_integer(value: int, kind: ElementKind) -> int:
    span = 1 << kind.bits
    value %= span
    if kind.signed and value >= span >> 1:
        value -= span
    return value


def _integer_range(kind: ElementKind) -> tuple[int, int]:
    if kind.signed:
        half = 1 << (kind.bits - 1)
        return -half, half - 1
    return 0, (1 << kind.bits) - 1


def _to_bool(value: object, kind: ElementKind) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, decimal.Decimal)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text == "true":
            return True
        if text == "false":
            return False
        raise ConversionError(value, kind.value, "expected 'true' or 'false'")
    raise ConversionError(value, kind.value, "unsupported leaf type")


def _to_integer(value: object, kind: ElementKind) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return _wrap_integer(value, kind)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ConversionError(value, kind.value, "value is not finite")
        return _wrap_integer(int(value), kind)
    if isinstance(value, decimal.Decimal):
        if not value.is_finite():
            raise ConversionError(value, kind.value, "value is not finite")
        return _wrap_integer(int(value), kind)
    if isinstance(value, str):
        parsed = int(value.strip())
        low, high = _integer_range(kind)
        if not low <= parsed <= high:
            raise ConversionError(value, kind.value, f"outside [{low}, {high}]")
        return parsed
    raise ConversionError(value, kind.value, "unsupported leaf type")


def _to_float(value: object, kind: ElementKind) -> float:
    if isinstance(value, bool):
        out = float(int(value))
    elif isinstance(value, (int, float, decimal.Decimal)):
        out = float(value)
    elif isinstance(value, str):
        out = float(value.strip())
    else:
        raise ConversionError(value, kind.value, "unsupported leaf type")
    if kind is ElementKind.FLOAT32:
        return jnp.asarray(out, dtype=jnp.float32).item()
    return out


def _to_decimal(value: object, kind: ElementKind) -> decimal.Decimal:
    if isinstance(value, bool):
        return decimal.Decimal(int(value))
    if isinstance(value, int):
        return decimal.Decimal(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ConversionError(value, kind.value, "value is not finite")
        # repr keeps the shortest round-tripping digits, not the binary expansion.
        return decimal.Decimal(repr(value))
    if isinstance(value, decimal.Decimal):
        out = value
    elif isinstance(value, str):
        out = decimal.Decimal(value.strip())
    else:
        raise ConversionError(value, kind.value, "unsupported leaf type")
    if not out.is_finite():
        raise ConversionError(value, kind.value, "value is not finite")
    return out


def _to_text(value: object, kind: ElementKind) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, (bool, int, decimal.Decimal)):
        return str(value)
    raise ConversionError(value, kind.value, "unsupported leaf type")


_CONVERTERS: dict[str, Callable[[object, ElementKind], object]] = {
    "bool": _to_bool,
    "int": _to_integer,
    "float": _to_float,
    "decimal": _to_decimal,
    "text": _to_text,
}


def element_converter(element_kind) -> ElementConverter:
    """Build the scalar converter for one target element kind."""
    kind = ElementKind.coerce(element_kind)
    convert_one = _CONVERTERS[kind.category]

    def convert_leaf(leaf: object) -> object:
        value = _normalize_leaf(leaf, kind)
        try:
            return convert_one(value, kind)
        except ConversionError:
            raise
        except (ArithmeticError, TypeError, ValueError) as exc:
            raise classify_conversion_exception(exc, value=leaf, target=kind.value) from exc

    return convert_leaf


def convert_element(value: object, element_kind) -> object:
    return element_converter(element_kind)(value)


def _resolve_kind(source: object, element_kind) -> ElementKind | None:
    if element_kind is not None:
        return ElementKind.coerce(element_kind)
    try:
        return innermost_element_type(source)
    except (TypeError, ValueError) as exc:
        raise ConversionError(source, "element kind", str(exc)) from exc


def _identity(leaf: object) -> object:
    return leaf


def _allocate(extents: tuple[int, ...], fill: object, make_row: Callable[[list], list]) -> list:
    if len(extents) == 1:
        return make_row([fill] * extents[0])
    return make_row([_allocate(extents[1:], fill, make_row) for _ in range(extents[0])])


def _rectangular_kind(source: object, kind: ElementKind | None) -> ElementKind:
    if kind is None:
        raise ConversionError(source, "rectangular", "cannot infer the element kind of an array with no leaves")
    if kind.dtype is None:
        raise ConversionError(source, kind.value, "kind has no rectangular storage; use the jagged layout")
    if kind.bits == 64 and not x64_enabled():
        raise ConversionError(source, kind.value, "64-bit kinds need jax_enable_x64")
    return kind


def _materialize(staging: list, shape: Shape, kind: ElementKind):
    return jnp.asarray(staging, dtype=kind.dtype).reshape(shape.extents)


def _jagged_to_rectangular(source, kind, use_max, leaf_converter):
    kind = _rectangular_kind(source, kind)
    shape = shape_of(source, deep=True, use_max=use_max)
    staging = _allocate(shape.extents, kind.default, list)
    _log.debug("convert jagged -> rectangular: shape=%s kind=%s", shape.extents, kind.value)
    # Walk the source's real rows, not the padded allocation shape.
    for index in iter_value_indices(source, shape.rank):
        leaf = get_value(source, index, deep=True)
        if is_container(leaf):
            raise ShapeError(f"element at {index} is nested deeper than the allocated shape {shape.extents}")
        staging = set_value(staging, leaf_converter(leaf), index, deep=True)
    return _materialize(staging, shape, kind)


def _rectangular_to_rectangular(source, kind, leaf_converter):
    kind = _rectangular_kind(source, kind)
    shape = shape_of(source)
    staging = _allocate(shape.extents, kind.default, list)
    _log.debug("convert rectangular -> rectangular: shape=%s kind=%s", shape.extents, kind.value)
    # One device transfer; elements are then read from the host copy.
    host = source.tolist()
    for index in IndexSpace(shape):
        leaf = get_value(host, index, deep=True)
        staging = set_value(staging, leaf_converter(leaf), index, deep=True)
    return _materialize(staging, shape, kind)


def _rectangular_to_jagged(source, kind, leaf_converter):
    shape = shape_of(source)
    fill = None if kind is None else kind.default
    dest = _allocate(shape.extents, fill, lambda items: JaggedArray(items, kind))
    _log.debug("convert rectangular -> jagged: shape=%s kind=%s", shape.extents, getattr(kind, "value", None))
    host = source.tolist()
    for index in IndexSpace(shape):
        leaf = get_value(host, index, deep=True)
        dest = set_value(dest, leaf_converter(leaf), index, deep=True)
    return dest


def _jagged_to_jagged(source, kind, use_max, leaf_converter):
    shape = shape_of(source, deep=False)
    fill = None if kind is None else kind.default
    dest = JaggedArray([fill] * shape.extents[0], kind)
    _log.debug("convert jagged -> jagged: rows=%d kind=%s", shape.extents[0], getattr(kind, "value", None))
    for index in IndexSpace(shape):
        row = get_value(source, index, deep=False)
        if is_container(row):
            converted = _convert(row, kind, None, use_max, leaf_converter)
        else:
            converted = leaf_converter(row)
        dest = set_value(dest, converted, index, deep=False)
    return dest


def _convert(source, kind, layout, use_max, leaf_converter):
    source_layout = layout_of(source)
    if source_layout is None:
        return leaf_converter(source)
    target_layout = source_layout if layout is None else Layout(layout)
    if source_layout is Layout.JAGGED:
        if target_layout is Layout.RECTANGULAR:
            return _jagged_to_rectangular(source, kind, use_max, leaf_converter)
        return _jagged_to_jagged(source, kind, use_max, leaf_converter)
    if target_layout is Layout.JAGGED:
        return _rectangular_to_jagged(source, kind, leaf_converter)
    return _rectangular_to_rectangular(source, kind, leaf_converter)


@wide_types
def convert(
    source,
    element_kind=None,
    layout: Layout | str | None = None,
    *,
    use_max: bool | None = None,
    converter: ElementConverter | None = None,
):
    """Convert an array of any rank, layout and leaf kind.

    ``element_kind`` defaults to the source's innermost kind and ``layout``
    to the source's layout. ``use_max`` selects the ragged-shape policy for
    jagged -> rectangular allocation (None uses the configured default).
    ``converter`` replaces the built-in scalar rules. The source is never
    mutated; a new array is always returned, and any ConversionError aborts
    the whole conversion.
    """
    kind = _resolve_kind(source, element_kind)
    if converter is None:
        # kind is only None when there are no leaves to convert.
        converter = _identity if kind is None else element_converter(kind)
    return _convert(source, kind, layout, use_max, converter)


def astype(value, element_kind):
    """Change the leaf kind, keeping the layout."""
    return convert(value, element_kind)


def to_rectangular(value, element_kind=None, *, use_max: bool | None = None):
    return convert(value, element_kind, Layout.RECTANGULAR, use_max=use_max)


def to_jagged(value, element_kind=None):
    return convert(value, element_kind, Layout.JAGGED)
