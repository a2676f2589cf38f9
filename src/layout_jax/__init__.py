"""layout-jax public API."""

from .accessor import NOT_FOUND, get_value, set_value, try_get_value
from .convert import astype, convert, convert_element, element_converter, to_jagged, to_rectangular
from .errors import ConversionError, IndexOutOfRange, LayoutError, ShapeError
from .flatten import flatten, unflatten
from .indexing import IndexSpace, iter_indices, iter_value_indices
from .shape import Shape, shape_of
from .values import (
    ElementKind,
    JaggedArray,
    Layout,
    ValueInfo,
    depth_of,
    innermost_element_type,
    is_container,
    is_jagged,
    is_rectangular,
    is_vector,
    layout_of,
    value_info,
)

__version__ = "0.1.0"

__all__ = [
    "convert",
    "astype",
    "to_rectangular",
    "to_jagged",
    "convert_element",
    "element_converter",
    "flatten",
    "unflatten",
    "get_value",
    "try_get_value",
    "set_value",
    "NOT_FOUND",
    "IndexSpace",
    "iter_indices",
    "iter_value_indices",
    "Shape",
    "shape_of",
    "ElementKind",
    "JaggedArray",
    "Layout",
    "ValueInfo",
    "depth_of",
    "innermost_element_type",
    "is_container",
    "is_jagged",
    "is_rectangular",
    "is_vector",
    "layout_of",
    "value_info",
    "LayoutError",
    "IndexOutOfRange",
    "ShapeError",
    "ConversionError",
]
