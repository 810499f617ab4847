"""Discovery of the named record types that become reusable component schemas."""

import logging
from typing import Any, Callable, Iterable

from openapi_writer.errors import SchemaNameCollisionError
from openapi_writer.generator.data_types import DataTypeRegistry
from openapi_writer.generator.renderer import SchemaRenderer, should_recurse_struct_field
from openapi_writer.introspect.field import Field, Fields, zero_slice_value_field
from openapi_writer.introspect.kinds import Kind
from openapi_writer.introspect.walker import enumerate_struct_fields
from openapi_writer.operation import InternalOperation

logger = logging.getLogger(__name__)


class ComponentCollector:
    """Walks response shapes to find every record that needs a component schema."""

    def __init__(self, data_types: DataTypeRegistry, renderer: SchemaRenderer):
        self.data_types = data_types
        self.renderer = renderer

    def visit_structs(self, f: Field, visitor: Callable[[Field], None]) -> None:
        """Call ``visitor`` for ``f`` and every record reachable through its fields."""
        while f.kind is Kind.SLICE:
            f = zero_slice_value_field(f)
        if self.data_types.is_data_type(f):
            return
        if f.kind is not Kind.STRUCT:
            return

        visitor(f)
        for field in enumerate_struct_fields(f):
            self.visit_structs(field, visitor)

    def sorted_fields_for_schema(self, operations: Iterable[InternalOperation]) -> Fields:
        """Return each record type used by a response exactly once, sorted by name."""
        found = Fields()
        for op in operations:
            for resp in op.responses:
                self.visit_structs(resp.field, found.append)

        result = (
            found
            .compact()
            .flatten_slice_types()
            .distinct()
            .remove_anonymous_types()
            .sorted_by_name()
        )
        _check_unique_names(result)
        logger.debug("Discovered %d component schemas", len(result))
        return result

    def schemas(self, operations: Iterable[InternalOperation]) -> dict[str, Any]:
        """Return the components/schemas mapping for ``operations``."""
        return {
            f.type_name: self.renderer.struct_schema(f, should_recurse_struct_field)
            for f in self.sorted_fields_for_schema(operations)
        }


def _check_unique_names(fields: Fields) -> None:
    seen: dict[str, Field] = {}
    for f in fields:
        other = seen.setdefault(f.type_name, f)
        if other is not f:
            raise SchemaNameCollisionError(f.type_name, other.type_repr, f.type_repr)
