"""Schema rendering for a single type descriptor.

Every method returns plain dicts ready for YAML serialization. Records met
while walking are either expanded inline or linked with $ref, as decided by
an expansion policy: a callable taking the record Field and returning True
to expand it.
"""

from typing import Any, Callable

from openapi_writer.generator.data_types import DataTypeRegistry
from openapi_writer.introspect.field import Field, zero_slice_value_field
from openapi_writer.introspect.kinds import Kind
from openapi_writer.introspect.walker import (
    enumerate_struct_fields,
    has_declared_fields,
    is_exported_name,
    json_name,
)

SCHEMA_REF_PREFIX = "#/components/schemas/"

ExpandPolicy = Callable[[Field], bool]


def expand_always(_f: Field) -> bool:
    """Request bodies and parameters never use $ref."""
    return True


def should_recurse_struct_field(f: Field) -> bool:
    """Expansion policy for fields of component schemas.

    A record ends up as its own component if it has a name and is public.
    Inline (nameless) types and embedded records are expanded, and private
    names are assumed not to be meant for the document.
    """
    if not f.type_name:
        return True
    if f.anonymous:
        return True
    return not is_exported_name(f.type_name)


def schema_ref_link(f: Field) -> str:
    """Return the link for a $ref, like "#/components/schemas/User"."""
    return f"{SCHEMA_REF_PREFIX}{f.type_name}"


class SchemaRenderer:
    """Renders schemas for descriptors using the rules of a DataTypeRegistry."""

    def __init__(self, data_types: DataTypeRegistry):
        self.data_types = data_types

    def data_type(self, f: Field) -> dict[str, Any]:
        """Render ``f`` through its data type rule; raises UnsupportedTypeError if it has none."""
        return self.data_types.render(f)

    def field_schema(self, f: Field, expand: ExpandPolicy) -> dict[str, Any]:
        """Render any descriptor, expanding or referencing records according to ``expand``."""
        if self.data_types.is_data_type(f):
            return self.data_type(f)
        if f.kind is Kind.SLICE:
            return {"type": "array", "items": self.field_schema(zero_slice_value_field(f), expand)}
        if f.kind is Kind.STRUCT:
            if not has_declared_fields(f.type):
                return {"type": "object"}
            if expand(f):
                return self.struct_schema(f, expand)
            return self.ref_schema(f)
        return self.data_type(f)

    def struct_schema(self, f: Field, expand: ExpandPolicy) -> dict[str, Any]:
        """Render record ``f`` as an object with one property per visible, serialized field."""
        schema: dict[str, Any] = {"type": "object"}
        properties: dict[str, Any] = {}
        for field in enumerate_struct_fields(f):
            name = json_name(field)
            if not name:
                continue
            properties[name] = self.field_schema(field, expand)
        if properties:
            schema["properties"] = properties
        return schema

    def ref_schema(self, f: Field) -> dict[str, Any]:
        """Render ``f`` preferring a $ref for named records."""
        if f.kind is Kind.SLICE:
            return {"type": "array", "items": self.ref_schema(zero_slice_value_field(f))}
        if f.kind is not Kind.STRUCT or self.data_types.is_data_type(f):
            return self.data_type(f)
        if not has_declared_fields(f.type):
            return {"type": "object"}
        if not f.type_name:
            # Nameless types never become components.
            return self.struct_schema(f, should_recurse_struct_field)
        return {"$ref": schema_ref_link(f)}
