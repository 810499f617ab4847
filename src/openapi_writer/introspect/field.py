"""Type descriptors.

A ``Field`` is the normalized view of one value or annotation: its kind,
its Optional-stripped type, and the metadata of the record field it came
from. Descriptors are cheap and rebuilt on every introspection call.
"""

import dataclasses
import types
from typing import Annotated, Any, Callable, Union, get_args, get_origin

from openapi_writer.introspect.kinds import EMPTY_TAGS, Kind, Tags, kind_of

NoneType = type(None)


@dataclasses.dataclass(frozen=True)
class Field:
    """Introspection record for a value, a type, or a record field."""

    # The original value or annotation passed in.
    value: Any = None
    # Normalized type: Annotated and Optional wrappers removed.
    type: Any = None
    kind: Kind = Kind.INVALID
    # True when built from Optional[T]; otherwise identical to a T descriptor.
    nullable: bool = False
    # Declared field name, empty unless built from a record field.
    name: str = ""
    tags: Tags = EMPTY_TAGS
    anonymous: bool = False
    from_struct_field: bool = False
    # Rule attached when the type was registered explicitly. May be None.
    data_typer: Callable | None = None

    def is_nil(self) -> bool:
        """Return True if the descriptor was created from None."""
        return self.kind is Kind.INVALID

    @property
    def type_name(self) -> str:
        return type_name(self.type)

    @property
    def type_repr(self) -> str:
        return type_repr(self.type)

    def __str__(self) -> str:
        if self.is_nil():
            return "Field{}"
        return f"Field{{{self.kind}-{self.type_name}}}"


NIL_FIELD = Field()


def new_field(
    value: Any,
    name: str = "",
    tags: Tags | None = None,
    anonymous: bool = False,
    from_struct_field: bool = False,
) -> Field:
    """Return a Field for ``value``, which may be an instance or a type annotation.

    None (or NoneType) yields the nil descriptor.
    """
    annotation = _annotation_of(value)
    if annotation is None:
        return NIL_FIELD
    tp, nullable = normalize_annotation(annotation)
    if tp is None:
        return NIL_FIELD
    return Field(
        value=value,
        type=tp,
        kind=kind_of(tp),
        nullable=nullable,
        name=name,
        tags=tags if tags is not None else EMPTY_TAGS,
        anonymous=anonymous,
        from_struct_field=from_struct_field,
    )


def is_annotation(value: Any) -> bool:
    """Return True if ``value`` is a type or typing construct rather than an instance."""
    return value is Any or isinstance(value, type) or get_origin(value) is not None


def _annotation_of(value: Any) -> Any:
    if value is None or value is NoneType:
        return None
    if is_annotation(value):
        return value
    return type(value)


def normalize_annotation(tp: Any) -> tuple[Any, bool]:
    """Strip Annotated and Optional wrappers.

    Returns the bare type (None for NoneType) and whether it was Optional.
    """
    nullable = False
    while True:
        origin = get_origin(tp)
        if origin is Annotated:
            tp = get_args(tp)[0]
            continue
        if origin is Union or origin is types.UnionType:
            args = get_args(tp)
            remaining = tuple(a for a in args if a is not NoneType)
            if len(remaining) < len(args):
                nullable = True
                if len(remaining) == 1:
                    tp = remaining[0]
                    continue
                tp = Union[remaining]
        break
    if tp is NoneType:
        return None, nullable
    return tp, nullable


def zero_slice_value_field(field: Field) -> Field:
    """For a slice descriptor, return a descriptor of one element of the slice.

    zero_slice_value_field(new_field(list[User])) is equivalent to new_field(User).
    Untyped collections have an Any element.
    """
    element: Any = Any
    args = get_args(field.type)
    if args:
        if get_origin(field.type) is tuple:
            if len(args) == 2 and args[1] is Ellipsis:
                element = args[0]
        else:
            element = args[0]
    return new_field(element)


def is_anonymous_type(tp: Any) -> bool:
    """Return True for classes declared inside another class body.

    Those play the part of inline struct types: they have no name of their
    own in the document and are always expanded where they are used.
    """
    if not isinstance(tp, type) or get_origin(tp) is not None:
        return False
    parts = tp.__qualname__.split(".")
    return len(parts) > 1 and parts[-2] != "<locals>"


def type_name(tp: Any) -> str:
    """Return the bare declared name of ``tp``, or "" if it has none."""
    if not isinstance(tp, type) or get_origin(tp) is not None or is_anonymous_type(tp):
        return ""
    return tp.__name__


def type_repr(tp: Any) -> str:
    if isinstance(tp, type):
        return f"{tp.__module__}.{tp.__qualname__}"
    return repr(tp)


class Fields(list):
    """A list of Field descriptors with chainable clean-up steps."""

    def compact(self) -> "Fields":
        """Return a new Fields with nil descriptors removed."""
        return Fields(f for f in self if not f.is_nil())

    def flatten_slice_types(self) -> "Fields":
        """Replace slice descriptors with their element descriptors."""
        result = Fields()
        for f in self:
            while f.kind is Kind.SLICE:
                f = zero_slice_value_field(f)
            result.append(f)
        return result

    def distinct(self) -> "Fields":
        """Drop descriptors whose type was already seen; the first one wins."""
        seen = set()
        result = Fields()
        for f in self:
            if f.type not in seen:
                seen.add(f.type)
                result.append(f)
        return result

    def remove_anonymous_types(self) -> "Fields":
        """Drop descriptors for types with no name, like inline classes."""
        return Fields(f for f in self if f.type_name)

    def sorted_by_name(self) -> "Fields":
        return Fields(sorted(self, key=lambda f: f.type_name))
