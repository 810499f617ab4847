"""Assemble the OpenAPI document and serialize it to YAML."""

import logging
from typing import IO, TYPE_CHECKING, Any

import yaml

from openapi_writer.generator.components import ComponentCollector
from openapi_writer.generator.renderer import SchemaRenderer, expand_always
from openapi_writer.introspect.field import Field
from openapi_writer.introspect.kinds import Kind
from openapi_writer.introspect.walker import enumerate_struct_fields
from openapi_writer.operation import InternalOperation, Response

if TYPE_CHECKING:
    from openapi_writer.document import Document

logger = logging.getLogger(__name__)

OPENAPI_VERSION = "3.0.0"
PLAIN_CONTENT_TYPE = "text/plain"
PARAMETER_LOCATIONS = ("path", "query", "header")


class _IndentedDumper(yaml.SafeDumper):
    """Indents block sequences under their parent key, two spaces per level."""

    def increase_indent(self, flow=False, indentless=False):
        return super().increase_indent(flow, False)

    def ignore_aliases(self, data):
        return True


def dump_yaml(data: Any, stream: IO[str] | None = None) -> str | None:
    """Serialize ``data`` preserving key order; returns the text if ``stream`` is None."""
    return yaml.dump(
        data,
        stream,
        Dumper=_IndentedDumper,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        indent=2,
        width=float("inf"),
    )


class DocumentEmitter:
    """Builds the document sections in a fixed order: info, tags, servers,
    paths, components and the global security requirements."""

    def __init__(self, document: "Document"):
        self.document = document
        self.renderer = SchemaRenderer(document.data_types)
        self.collector = ComponentCollector(document.data_types, self.renderer)

    def build(self) -> dict[str, Any]:
        doc = self.document
        result: dict[str, Any] = {"openapi": OPENAPI_VERSION, "info": self.info()}
        if doc.tags:
            result["tags"] = [t.to_dict() for t in doc.tags]
        if doc.servers:
            result["servers"] = [s.to_dict() for s in doc.servers]
        result["paths"] = self.paths()
        components = self.components()
        if components:
            result["components"] = components
        if doc.securities:
            result["security"] = [{s.id: []} for s in doc.securities]
        return result

    def info(self) -> dict[str, Any]:
        doc = self.document
        info: dict[str, Any] = {"title": doc.title, "description": doc.description}
        if doc.terms_of_service:
            info["termsOfService"] = doc.terms_of_service
        if not doc.contact.is_empty():
            info["contact"] = doc.contact.to_dict()
        if not doc.license.is_empty():
            info["license"] = doc.license.to_dict()
        info["version"] = doc.version
        return info

    # -- paths ----------------------------------------------------------------

    def sorted_operations(self) -> list[InternalOperation]:
        """Return operations sorted by path, then by method (get, post, put, patch, delete)."""
        return sorted(self.document.internal_operations, key=InternalOperation.sort_key)

    def paths(self) -> dict[str, Any]:
        paths: dict[str, Any] = {}
        operations = self.sorted_operations()
        logger.debug("Writing %d operations", len(operations))
        for op in operations:
            paths.setdefault(op.path, {})[op.method] = self.operation(op)
        return paths

    def operation(self, op: InternalOperation) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if op.tags:
            result["tags"] = list(op.tags)
        result["operationId"] = op.operation_id
        if op.summary:
            result["summary"] = op.summary
        if op.description:
            result["description"] = op.description
        parameters = self.parameters(op.params)
        if parameters:
            result["parameters"] = parameters
        if op.use_request_body():
            result["requestBody"] = self.request_body(op.params)
        result["responses"] = {resp.code: self.response(resp) for resp in op.responses}
        return result

    def parameters(self, params: Field) -> list[dict[str, Any]]:
        """Return a parameter object for every field tagged path, query or header."""
        if params.kind is not Kind.STRUCT or self.document.data_types.is_data_type(params):
            return []
        result = []
        for field in enumerate_struct_fields(params):
            location = next((loc for loc in PARAMETER_LOCATIONS if field.tags.get(loc)), None)
            if location is None:
                continue
            param: dict[str, Any] = {"name": field.tags.get(location), "in": location}
            if location == "path":
                param["required"] = True
            if description := field.tags.get("description"):
                param["description"] = description
            param["schema"] = self.renderer.ref_schema(field)
            result.append(param)
        return result

    def request_body(self, params: Field) -> dict[str, Any]:
        """Request bodies are always expanded, never referenced."""
        if params.kind is Kind.STRUCT and not self.document.data_types.is_data_type(params):
            schema = self.renderer.struct_schema(params, expand_always)
        else:
            schema = self.renderer.field_schema(params, expand_always)
        return {
            "required": True,
            "content": {self.content_type_for(params): {"schema": schema}},
        }

    def response(self, resp: Response) -> dict[str, Any]:
        result: dict[str, Any] = {"description": resp.description}
        field = resp.field
        if not field.is_nil():
            result["content"] = {
                self.content_type_for(field): {"schema": self.renderer.ref_schema(field)},
            }
        return result

    def content_type_for(self, f: Field) -> str:
        if f.kind is Kind.STRING:
            return PLAIN_CONTENT_TYPE
        return self.document.default_content_type

    # -- components -----------------------------------------------------------

    def components(self) -> dict[str, Any]:
        components: dict[str, Any] = {}
        schemas = self.collector.schemas(self.document.internal_operations)
        if schemas:
            components["schemas"] = schemas
        if self.document.securities:
            components["securitySchemes"] = {s.id: s.to_dict() for s in self.document.securities}
        return components
