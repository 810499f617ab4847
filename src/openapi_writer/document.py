"""The document registry: metadata, data type rules and operations of one OpenAPI document.

    doc = Document("Users API", "Manage users", "1.0.0")
    doc.add_server("https://api.example.com/v1", "Production server.")
    doc.add(new_operation("GET", "/users/:id", "Get a user.", GetUserParams, User, ErrorModel))
    doc.write_yaml_file("openapi.yaml")

See https://swagger.io/specification/
"""

import logging
from pathlib import Path
from typing import IO, Any, Callable

from openapi_writer.errors import DuplicateOperationError
from openapi_writer.generator.data_types import DataTyper, DataTypeRegistry
from openapi_writer.generator.emitter import DocumentEmitter, dump_yaml
from openapi_writer.models import ApiTag, Contact, License, SecurityScheme, Server
from openapi_writer.operation import InternalOperation, Operation

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/json"


class Document:
    """An OpenAPI document: info, servers, security, data type rules and operations.

    Each instance is independent. Building the same document from several
    threads at once needs outside locking.
    """

    def __init__(self, title: str, description: str, version: str):
        # Content type of every request body and response; document-wide only.
        self.default_content_type = DEFAULT_CONTENT_TYPE
        self.title = title
        self.description = description
        self.version = version
        self.terms_of_service = ""
        self.contact = Contact()
        self.license = License()
        self.servers: list[Server] = []
        self.tags: list[ApiTag] = []
        self.securities: list[SecurityScheme] = []
        self.data_types = DataTypeRegistry.with_builtins()
        self._operations: dict[tuple[str, str], InternalOperation] = {}

    @property
    def internal_operations(self) -> list[InternalOperation]:
        return list(self._operations.values())

    @property
    def operations(self) -> tuple[Operation, ...]:
        """The operations as they were added."""
        return tuple(op.original for op in self._operations.values())

    def add(self, op: Operation) -> Operation:
        """Register an operation and the types it uses.

        Raises DuplicateOperationError if the path and method are already taken.
        """
        internal = InternalOperation.from_operation(op)
        key = (internal.path, internal.method)
        if key in self._operations:
            raise DuplicateOperationError(internal.method, internal.path)
        self._operations[key] = internal
        logger.debug("Added operation %s %s", internal.method.upper(), internal.path)
        return op

    def add_server(self, url: str, description: str) -> "Document":
        self.servers.append(Server(url=url, description=description))
        return self

    def set_terms_of_service(self, url: str) -> "Document":
        self.terms_of_service = url
        return self

    def set_contact(self, name: str, url: str, email: str) -> "Document":
        self.contact = Contact(name=name, url=url, email=email)
        return self

    def set_license(self, name: str, url: str) -> "Document":
        self.license = License(name=name, url=url)
        return self

    def add_tag(self, name: str, description: str) -> "Document":
        self.tags.append(ApiTag(name=name, description=description))
        return self

    def add_basic_auth_security(self) -> "Document":
        """Add a type:http scheme:basic security scheme and global requirement."""
        self.securities.append(SecurityScheme.basic())
        return self

    def add_jwt_security(self) -> "Document":
        """Add a type:http scheme:bearer security scheme and global requirement."""
        self.securities.append(SecurityScheme.jwt())
        return self

    def add_api_key_security(self, location: str, name: str) -> "Document":
        """Add a type:apiKey security scheme and global requirement."""
        self.securities.append(SecurityScheme.api_key(location, name))
        return self

    def define_data_type(self, value: Any, data_typer: DataTyper) -> None:
        """Use ``data_typer`` for every field whose type is the type of ``value``.

        For example, define_data_type(Int32, simple_data_typer("integer", "int32")).
        A record type given a rule here is rendered as a data type instead of
        being walked or referenced, the way datetime maps to a date-time string:

            doc.define_data_type(datetime, simple_data_typer("string", "date-time"))

        A rule can also read the field's tags:

            def formattable(f, of):
                of["type"] = "string"
                if fmt := f.tags.get("format"):
                    of["format"] = fmt

            doc.define_data_type(FormattableString, formattable)
        """
        self.data_types.define(value, data_typer)

    def to_dict(self) -> dict[str, Any]:
        """Return the whole document as plain, ordered data."""
        return DocumentEmitter(self).build()

    def write_yaml(self, stream: IO[str]) -> None:
        """Write the YAML document to ``stream``.

        The document is built completely first, so nothing is written on error.
        """
        stream.write(self.build_yaml())

    def build_yaml(self) -> str:
        return dump_yaml(self.to_dict())

    def write_yaml_file(self, filename: str | Path) -> None:
        """Write the YAML document to ``filename``, replacing any existing file."""
        text = self.build_yaml()
        Path(filename).write_text(text, encoding="utf-8")


def select_map(source: Document, fn: Callable[[Operation], Operation | None]) -> Document:
    """Return a new Document built from ``source`` with its operations filtered and rewritten.

    ``fn`` receives a copy of each operation and returns None to drop it, or the
    operation to keep (possibly modified). ``source`` is not changed.
    """
    dest = Document(source.title, source.description, source.version)
    dest.default_content_type = source.default_content_type
    dest.terms_of_service = source.terms_of_service
    dest.contact = source.contact.model_copy()
    dest.license = source.license.model_copy()
    dest.servers = [s.model_copy() for s in source.servers]
    dest.tags = [t.model_copy() for t in source.tags]
    dest.securities = [s.model_copy(deep=True) for s in source.securities]
    dest.data_types = source.data_types.copy()
    for op in source.operations:
        new_op = fn(op.model_copy(update={"tags": list(op.tags)}))
        if new_op is not None:
            dest.add(new_op)
    return dest
