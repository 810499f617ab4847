"""Exceptions raised while building an OpenAPI document.

Generation is all-or-nothing: any of these aborts the build before
a single byte of YAML is written.
"""

FILE_BUG_MESSAGE = (
    "This should not occur in the wild. "
    "Please file a bug against openapi-writer with as much reproduction information as possible, "
    "including its definition, and the definition of the type/s using it for a field."
)


class OpenApiWriterError(Exception):
    """Base class for all openapi-writer errors."""


class UnsupportedTypeError(OpenApiWriterError, TypeError):
    """No data type rule exists for a scalar kind or type."""

    def __init__(self, kind: str, type_repr: str):
        self.kind = kind
        self.type_repr = type_repr
        super().__init__(
            f"No data type defined for kind {kind}, type {type_repr}. "
            "You should either change the type, or register a custom data type "
            "with Document.define_data_type()."
        )


class InternalInvariantError(OpenApiWriterError, RuntimeError):
    """A defect in the introspection layer itself, not bad input."""

    def __init__(self, message: str):
        super().__init__(f"{message} {FILE_BUG_MESSAGE}")


class DuplicateOperationError(OpenApiWriterError, ValueError):
    """An operation with the same path and method was already registered."""

    def __init__(self, method: str, path: str):
        self.method = method
        self.path = path
        super().__init__(f"Operation {method.upper()} {path} is already registered.")


class SchemaNameCollisionError(OpenApiWriterError, ValueError):
    """Two distinct component types share the same bare name."""

    def __init__(self, name: str, first: object, second: object):
        self.name = name
        super().__init__(
            f"Component schema name {name!r} is used by both {first!r} and {second!r}. "
            "Rename one of the types so each component has a unique name."
        )
