"""Value model: element kinds, layouts, and container predicates."""

from __future__ import annotations

import decimal
import enum
import os
from dataclasses import dataclass
from typing import Final

import jax
import jax.numpy as jnp

_ENABLE_X64: Final[bool] = os.environ.get("LAYOUT_JAX_DISABLE_X64", "0") != "1"


def wide_types(func):
    """Run ``func`` with jax 64-bit types enabled for the calling thread only.

    The process-wide ``jax_enable_x64`` setting is left as the host program
    configured it. With ``LAYOUT_JAX_DISABLE_X64=1`` the caller's setting
    applies unchanged.
    """
    if not _ENABLE_X64:
        return func
    return jax.enable_x64(True)(func)


def x64_enabled() -> bool:
    return bool(jax.enable_x64.value)


class Layout(str, enum.Enum):
    RECTANGULAR = "rectangular"
    JAGGED = "jagged"


@dataclass(frozen=True)
class _KindTraits:
    category: str
    dtype: str | None = None
    bits: int = 0
    signed: bool = False


_TRAITS: Final[dict[str, _KindTraits]] = {
    "bool": _KindTraits("bool", "bool"),
    "int8": _KindTraits("int", "int8", 8, True),
    "uint8": _KindTraits("int", "uint8", 8, False),
    "int16": _KindTraits("int", "int16", 16, True),
    "uint16": _KindTraits("int", "uint16", 16, False),
    "int32": _KindTraits("int", "int32", 32, True),
    "uint32": _KindTraits("int", "uint32", 32, False),
    "int64": _KindTraits("int", "int64", 64, True),
    "uint64": _KindTraits("int", "uint64", 64, False),
    "float32": _KindTraits("float", "float32", 32, True),
    "float64": _KindTraits("float", "float64", 64, True),
    "decimal": _KindTraits("decimal"),
    "text": _KindTraits("text"),
}


class ElementKind(str, enum.Enum):
    """Scalar leaf kinds an array can be converted between."""

    BOOL = "bool"
    INT8 = "int8"
    UINT8 = "uint8"
    INT16 = "int16"
    UINT16 = "uint16"
    INT32 = "int32"
    UINT32 = "uint32"
    INT64 = "int64"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    DECIMAL = "decimal"
    TEXT = "text"

    @property
    def category(self) -> str:
        return _TRAITS[self.value].category

    @property
    def bits(self) -> int:
        return _TRAITS[self.value].bits

    @property
    def signed(self) -> bool:
        return _TRAITS[self.value].signed

    @property
    def dtype(self):
        """jax dtype for rectangular storage, or None for host-only kinds."""
        name = _TRAITS[self.value].dtype
        if name is None:
            return None
        return jnp.dtype(name)

    @property
    def default(self) -> object:
        category = self.category
        if category == "bool":
            return False
        if category == "int":
            return 0
        if category == "float":
            return 0.0
        if category == "decimal":
            return decimal.Decimal(0)
        return ""

    @classmethod
    def coerce(cls, value: object) -> "ElementKind":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls(value.lower())
        try:
            name = jnp.dtype(value).name
        except TypeError as exc:
            raise ValueError(f"{value!r} does not name an element kind") from exc
        if name not in _TRAITS:
            raise ValueError(f"dtype {name} has no matching element kind")
        return cls(name)


class JaggedArray(list):
    """Explicit container type for jagged arrays built by the converter."""

    def __init__(self, items=(), element_kind: ElementKind | None = None) -> None:
        super().__init__(items)
        self.element_kind = element_kind


@dataclass(frozen=True)
class ValueInfo:
    layout: Layout | None
    shape: tuple[int, ...]
    rank: int
    depth: int
    element_kind: ElementKind | None


def is_rectangular(value: object) -> bool:
    return isinstance(value, jax.Array) and value.ndim >= 1


def is_sequence(value: object) -> bool:
    return isinstance(value, (list, tuple))


def is_container(value: object) -> bool:
    return is_sequence(value) or is_rectangular(value)


def is_vector(value: object) -> bool:
    """True for single-dimensional containers whose items are all leaves."""
    if is_rectangular(value):
        return value.ndim == 1
    if is_sequence(value):
        return not any(is_container(item) for item in value)
    return False


def is_jagged(value: object) -> bool:
    """True when the container's items are themselves containers."""
    return is_sequence(value) and any(is_container(item) for item in value)


def layout_of(value: object) -> Layout | None:
    if is_rectangular(value):
        return Layout.RECTANGULAR
    if is_sequence(value):
        return Layout.JAGGED
    return None


def leaf_kind(leaf: object) -> ElementKind:
    # bool before int: bool is an int subclass.
    if isinstance(leaf, jax.Array) or getattr(leaf, "shape", None) == ():
        return ElementKind.coerce(leaf.dtype)
    if isinstance(leaf, bool):
        return ElementKind.BOOL
    if isinstance(leaf, enum.Enum):
        return leaf_kind(leaf.value)
    if isinstance(leaf, int):
        return ElementKind.INT64
    if isinstance(leaf, float):
        return ElementKind.FLOAT64
    if isinstance(leaf, decimal.Decimal):
        return ElementKind.DECIMAL
    if isinstance(leaf, str):
        return ElementKind.TEXT
    raise TypeError(f"leaf has unsupported runtime type {type(leaf).__name__}")


def innermost_element_type(value: object) -> ElementKind | None:
    """Follow nested containers down to the first leaf and report its kind.

    Returns None for containers holding no leaves at any depth, unless a
    JaggedArray on the way down records the kind it was allocated for.
    """
    recorded = getattr(value, "element_kind", None)
    if recorded is not None:
        return recorded
    if is_rectangular(value):
        return ElementKind.coerce(value.dtype)
    if is_sequence(value):
        for item in value:
            kind = innermost_element_type(item)
            if kind is not None:
                return kind
        return None
    return leaf_kind(value)


def depth_of(value: object) -> int:
    if is_rectangular(value):
        return value.ndim
    if is_sequence(value):
        if not value:
            return 1
        return 1 + max(depth_of(item) for item in value)
    return 0


def value_info(value: object) -> ValueInfo:
    from .shape import shape_of

    shape = shape_of(value, deep=True, use_max=True)
    return ValueInfo(
        layout=layout_of(value),
        shape=shape.extents,
        rank=shape.rank,
        depth=depth_of(value),
        element_kind=innermost_element_type(value),
    )
