"""Kind categories and the marker types used to describe record fields.

Python has no sized numbers or struct tags, so they are spelled out here:

    @dataclass
    class User:
        id: Annotated[Int32, Tags(json="id", path="id")]
        name: Annotated[str, Tags(json="name", default="anonymous")]
        base: Annotated[Audit, Embedded()]
"""

import collections.abc
import enum
import types
from typing import Any, Iterator, Mapping, get_origin


class Kind(enum.Enum):
    """Kind category of a normalized type."""

    INVALID = "invalid"
    BOOL = "bool"
    INT = "int"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    STRING = "string"
    STRUCT = "struct"
    SLICE = "slice"
    MAP = "map"
    INTERFACE = "interface"
    # typing constructs with no schema of their own: non-optional unions, Literal, TypeVar
    OTHER = "other"

    def __str__(self) -> str:
        return self.value


class Int32(int):
    """A 32-bit integer, rendered as integer/int32."""


class Int64(int):
    """A 64-bit integer, rendered as integer/int64."""


class Float32(float):
    """A single precision float, rendered as number/float."""


class Float64(float):
    """A double precision float, rendered as number/double."""


SCALAR_KINDS = frozenset({
    Kind.BOOL,
    Kind.INT, Kind.INT32, Kind.INT64,
    Kind.FLOAT32, Kind.FLOAT64,
    Kind.STRING,
})

# Most derived first: the MRO walk returns the first hit.
_KINDS_BY_TYPE: dict[type, Kind] = {
    bool: Kind.BOOL,
    Int32: Kind.INT32,
    Int64: Kind.INT64,
    int: Kind.INT,
    Float32: Kind.FLOAT32,
    Float64: Kind.FLOAT64,
    float: Kind.FLOAT64,
    str: Kind.STRING,
    bytes: Kind.STRING,
    dict: Kind.MAP,
    list: Kind.SLICE,
    tuple: Kind.SLICE,
    set: Kind.SLICE,
    frozenset: Kind.SLICE,
}


def kind_of(tp: Any) -> Kind:
    """Return the kind category of a type with Optional/Annotated already stripped."""
    if tp is Any or tp is object:
        return Kind.INTERFACE

    origin = get_origin(tp)
    if origin is not None:
        if isinstance(origin, type) and origin is not types.UnionType:
            return kind_of(origin)
        return Kind.OTHER

    if not isinstance(tp, type):
        return Kind.OTHER

    for base in tp.__mro__:
        if base in _KINDS_BY_TYPE:
            return _KINDS_BY_TYPE[base]
    if issubclass(tp, collections.abc.Mapping):
        return Kind.MAP
    if issubclass(tp, (collections.abc.Sequence, collections.abc.Set)):
        return Kind.SLICE
    return Kind.STRUCT


class Tags(Mapping[str, str]):
    """Field metadata, the equivalent of a struct tag.

    Well-known keys are ``json``, ``path``, ``query``, ``header``,
    ``description``, ``default`` and ``validate``; integrators may add any
    other key and read it from a custom data typer.
    """

    __slots__ = ("_items",)

    def __init__(self, **values: str):
        self._items = tuple(sorted((k, str(v)) for k, v in values.items()))

    def __getitem__(self, key: str) -> str:
        for k, v in self._items:
            if k == key:
                return v
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return (k for k, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self) -> int:
        return hash(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Tags):
            return self._items == other._items
        return super().__eq__(other)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v!r}" for k, v in self._items)
        return f"Tags({inner})"

    def get(self, key: str, default: str = "") -> str:  # type: ignore[override]
        return super().get(key, default)

    def merged(self, **values: str) -> "Tags":
        """Return a copy with ``values`` added; existing keys win."""
        combined = dict(values)
        combined.update(dict(self._items))
        return Tags(**combined)


EMPTY_TAGS = Tags()


class Embedded:
    """Marks a field as embedded: its type's fields are promoted into the parent."""

    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Embedded)

    def __hash__(self) -> int:
        return hash(Embedded)

    def __repr__(self) -> str:
        return "Embedded()"
