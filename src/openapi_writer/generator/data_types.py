"""Data type rules: how scalar-like values get their type/format attributes.

A DataTyper receives a Field and a shared ObjectFields map and writes
attributes into it. Rules compose with chain_data_typer, so a custom rule
can start from the builtin behavior and add to it:

    doc.define_data_type(str, builtin_data_typer_for(str, add_format))

Records are normally walked (request bodies) or referenced (responses).
Some records, like datetime, must instead be rendered as data types;
defining a rule for the exact type achieves that:

    doc.define_data_type(Money, simple_data_typer("string", "decimal"))

See https://swagger.io/specification/#dataTypes
"""

import datetime
import logging
from typing import Any, Callable, NamedTuple

import yaml

from openapi_writer.errors import UnsupportedTypeError
from openapi_writer.introspect.field import Field, new_field
from openapi_writer.introspect.kinds import SCALAR_KINDS, Float32, Float64, Int32, Int64, Kind

logger = logging.getLogger(__name__)

_INT_KINDS = frozenset({Kind.INT, Kind.INT32, Kind.INT64})
_FLOAT_KINDS = frozenset({Kind.FLOAT32, Kind.FLOAT64})


class ObjectFields(dict):
    """Attributes of a data type or security scheme object.

    Nearly always includes a "type" key; the other keys depend on the object
    (a "format" for data types, a "scheme" for security schemes).
    """

    def sorted(self) -> dict[str, Any]:
        """Return a plain dict with "type" first and the other keys alphabetical."""
        keys = sorted(self, key=lambda k: (k != "type", k))
        return {k: self[k] for k in keys}


DataTyper = Callable[[Field, ObjectFields], None]


def simple_data_typer(swagger_type: str, fmt: str = "") -> DataTyper:
    """Return a DataTyper setting "type", "format" if not empty, and "nullable" for Optional fields."""

    def typer(f: Field, of: ObjectFields) -> None:
        of["type"] = swagger_type
        if fmt:
            of["format"] = fmt
        if f.nullable:
            of["nullable"] = True

    return typer


def parse_scalar(raw: str) -> Any:
    """Interpret a tag value the way a YAML reader would ("true" -> True, "5" -> 5)."""
    try:
        value = yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw
    if isinstance(value, (dict, list)) or value is None:
        return raw
    return value


def parse_default(f: Field, raw: str) -> Any:
    """Convert a "default" tag for booleans and numbers; every other kind keeps the tag text."""
    try:
        if f.kind is Kind.BOOL:
            value = parse_scalar(raw)
            return value if isinstance(value, bool) else raw
        if f.kind in _INT_KINDS:
            return int(raw, 10)
        if f.kind in _FLOAT_KINDS:
            return float(raw)
    except ValueError:
        return raw
    return raw


def default_data_typer() -> DataTyper:
    """Return a DataTyper copying the field's "default" tag into "default"."""

    def typer(f: Field, of: ObjectFields) -> None:
        if d := f.tags.get("default"):
            of["default"] = parse_default(f, d)

    return typer


def chain_data_typer(*typers: DataTyper) -> DataTyper:
    """Return a DataTyper that calls each typer in order; later typers win on conflicts."""

    def typer(f: Field, of: ObjectFields) -> None:
        for t in typers:
            t(f, of)

    return typer


def noop_data_typer(_f: Field, _of: ObjectFields) -> None:
    pass


_default_data_typer = default_data_typer()

# Exact type -> (type, format). Order matters: the first issubclass hit wins for instances.
_BUILTIN_FORMATS: dict[type, tuple[str, str]] = {
    bool: ("boolean", ""),
    Int32: ("integer", "int32"),
    Int64: ("integer", "int64"),
    int: ("integer", "int64"),
    Float32: ("number", "float"),
    Float64: ("number", "double"),
    float: ("number", "double"),
    str: ("string", ""),
    datetime.datetime: ("string", "date-time"),
    dict: ("object", ""),
}

BUILTIN_DATA_TYPE_VALUES: tuple = (
    int, Int64, Int32, str, bool, float, Float64, Float32, datetime.datetime, dict,
)


def builtin_data_typer_for(value: Any, *chained: DataTyper) -> DataTyper:
    """Return the builtin DataTyper for the type of ``value``, followed by ``chained``.

    Builtin typers are simple_data_typer with the right type and format,
    then default_data_typer. Unsupported values only get default_data_typer.
    """
    tp = new_field(value).type
    dt: DataTyper = noop_data_typer
    if tp in _BUILTIN_FORMATS:
        dt = simple_data_typer(*_BUILTIN_FORMATS[tp])
    return chain_data_typer(dt, _default_data_typer, *chained)


class DataTypeDef(NamedTuple):
    """Associates a Field with the DataTyper for that field."""

    field: Field
    data_typer: DataTyper


# Kinds that may fall back to a rule registered for another type of the same kind.
_KIND_FALLBACKS = SCALAR_KINDS | {Kind.MAP, Kind.INTERFACE}


class DataTypeRegistry:
    """Maps exact types, and kinds as a fallback, to DataTypers."""

    def __init__(self):
        self._by_type: dict[Any, DataTypeDef] = {}
        self._by_kind: dict[Kind, DataTypeDef] = {}

    @classmethod
    def with_builtins(cls) -> "DataTypeRegistry":
        """Return a registry seeded with the builtin rules."""
        registry = cls()
        for v in BUILTIN_DATA_TYPE_VALUES:
            registry.define(v, builtin_data_typer_for(v))
        registry.define_for_kind(Kind.INTERFACE, noop_data_typer)
        return registry

    def define(self, value: Any, data_typer: DataTyper) -> None:
        """Use ``data_typer`` for every value with the same type as ``value``.

        Optional[T] shares the rule of T, since descriptors are keyed on the
        Optional-stripped type. Scalar, map and interface kinds also get the
        rule as their kind fallback, so subclasses (class MyInt(int)) use it.
        """
        f = new_field(value)
        if f.is_nil():
            raise ValueError("Cannot define a data type for None.")
        f = Field(
            value=f.value, type=f.type, kind=f.kind, nullable=f.nullable, data_typer=data_typer,
        )
        definition = DataTypeDef(f, data_typer)
        self._by_type[f.type] = definition
        if f.kind in _KIND_FALLBACKS:
            self._by_kind[f.kind] = definition
        logger.debug("Defined data type for %s (kind %s)", f.type_repr, f.kind)

    def define_for_kind(self, kind: Kind, data_typer: DataTyper) -> None:
        self._by_kind[kind] = DataTypeDef(Field(kind=kind, data_typer=data_typer), data_typer)

    def lookup(self, f: Field) -> DataTypeDef | None:
        """Return the rule for the exact type of ``f``, else for its kind, else None."""
        definition = self._by_type.get(f.type)
        if definition is None:
            definition = self._by_kind.get(f.kind)
        return definition

    def require(self, f: Field) -> DataTypeDef:
        definition = self.lookup(f)
        if definition is None:
            raise UnsupportedTypeError(str(f.kind), f.type_repr)
        return definition

    def is_data_type(self, f: Field) -> bool:
        """Return True if the exact type of ``f`` has a rule (like datetime mapped to string).

        Kind fallbacks do not count.
        """
        return f.type in self._by_type

    def render(self, f: Field) -> dict[str, Any]:
        """Run the rule for ``f`` and return its sorted attributes."""
        of = ObjectFields()
        self.require(f).data_typer(f, of)
        return of.sorted()

    def copy(self) -> "DataTypeRegistry":
        other = DataTypeRegistry()
        other._by_type = dict(self._by_type)
        other._by_kind = dict(self._by_kind)
        return other
