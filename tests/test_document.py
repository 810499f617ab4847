import datetime
import io
import random
from dataclasses import dataclass
from typing import Annotated, Any

import pytest
import yaml

from openapi_writer.document import Document, select_map
from openapi_writer.errors import DuplicateOperationError, UnsupportedTypeError
from openapi_writer.generator.data_types import builtin_data_typer_for, simple_data_typer
from openapi_writer.introspect.field import new_field
from openapi_writer.introspect.kinds import Int32, Tags
from openapi_writer.operation import Responses, new_operation, new_response


@dataclass
class User:
    id: Annotated[int, Tags(json="id")]
    name: Annotated[str, Tags(json="name")]


@dataclass
class ErrorModel:
    message: Annotated[str, Tags(json="message")]
    code: Annotated[int, Tags(json="code")]


@dataclass
class GetUserParams:
    id: Annotated[int, Tags(path="id", description="The user ID.")]
    pretty: Annotated[bool, Tags(query="pretty", default="true")]
    trace: Annotated[str, Tags(header="X-Trace")]


@dataclass
class CreateUserParams:
    name: Annotated[str, Tags(json="name")]
    address: Annotated["Address", Tags(json="address")]


@dataclass
class Address:
    street: Annotated[str, Tags(json="street")]


@dataclass
class Empty:
    pass


@dataclass
class TimeResponse:
    time: Annotated[datetime.datetime, Tags(json="time")]


@dataclass
class Custom:
    field: Annotated[str, Tags(json="field")]


@dataclass
class CustomResponse:
    custom: Annotated[Custom, Tags(json="custom")]


@dataclass
class CustomParams:
    pcustom: Annotated[Custom, Tags(json="pcustom")]


def _doc():
    return Document("Users API", "Manage users", "1.0.0")


def _load(doc):
    return yaml.safe_load(doc.build_yaml())


class TestMetadata:
    def test_minimal_document(self):
        doc = _doc()
        assert doc.build_yaml() == (
            "openapi: 3.0.0\n"
            "info:\n"
            "  title: Users API\n"
            "  description: Manage users\n"
            "  version: 1.0.0\n"
            "paths: {}\n"
        )

    def test_info_tags_servers(self):
        doc = (
            _doc()
            .set_terms_of_service("https://example.com/terms")
            .set_contact("API Support", "https://example.com/support", "support@example.com")
            .set_license("Apache 2.0", "https://www.apache.org/licenses/LICENSE-2.0.html")
            .add_tag("users", "User operations.")
            .add_server("https://api.example.com/v1", "Production server.")
        )
        data = _load(doc)
        assert list(data) == ["openapi", "info", "tags", "servers", "paths"]
        assert list(data["info"]) == ["title", "description", "termsOfService", "contact", "license", "version"]
        assert data["info"]["contact"] == {
            "name": "API Support",
            "url": "https://example.com/support",
            "email": "support@example.com",
        }
        assert data["tags"] == [{"name": "users", "description": "User operations."}]
        assert data["servers"] == [{"url": "https://api.example.com/v1", "description": "Production server."}]

    def test_security(self):
        doc = _doc().add_basic_auth_security().add_jwt_security().add_api_key_security("header", "X-API-Key")
        data = _load(doc)
        assert data["security"] == [{"basicAuth": []}, {"bearerAuth": []}, {"apiKeyAuth": []}]
        schemes = data["components"]["securitySchemes"]
        assert schemes["basicAuth"] == {"type": "http", "scheme": "basic"}
        assert list(schemes["bearerAuth"]) == ["type", "bearerFormat", "scheme"]
        assert schemes["apiKeyAuth"] == {"type": "apiKey", "in": "header", "name": "X-API-Key"}
        assert list(data)[-2:] == ["components", "security"]


class TestOperations:
    def test_parameters_exact_yaml(self):
        @dataclass
        class Params:
            id: Annotated[int, Tags(path="id")]
            pretty: Annotated[bool, Tags(query="pretty", default="true")]

        doc = Document("t", "d", "v")
        doc.add(new_operation("GET", "/users/:id", "", Params))
        assert doc.build_yaml() == (
            "openapi: 3.0.0\n"
            "info:\n"
            "  title: t\n"
            "  description: d\n"
            "  version: v\n"
            "paths:\n"
            "  /users/{id}:\n"
            "    get:\n"
            "      operationId: getUsersId\n"
            "      parameters:\n"
            "        - name: id\n"
            "          in: path\n"
            "          required: true\n"
            "          schema:\n"
            "            type: integer\n"
            "            format: int64\n"
            "        - name: pretty\n"
            "          in: query\n"
            "          schema:\n"
            "            type: boolean\n"
            "            default: true\n"
            "      responses:\n"
            "        '204':\n"
            "          description: The operation completed successfully.\n"
            "        default:\n"
            "          description: error response\n"
        )

    def test_get_with_parameters(self):
        doc = _doc()
        doc.add(new_operation("GET", "/users/:id", "Get a user.", GetUserParams, User, ErrorModel))
        op = _load(doc)["paths"]["/users/{id}"]["get"]
        assert list(op) == ["operationId", "summary", "parameters", "responses"]
        assert op["parameters"] == [
            {
                "name": "id",
                "in": "path",
                "required": True,
                "description": "The user ID.",
                "schema": {"type": "integer", "format": "int64"},
            },
            {"name": "pretty", "in": "query", "schema": {"type": "boolean", "default": True}},
            {"name": "X-Trace", "in": "header", "schema": {"type": "string"}},
        ]
        assert "requestBody" not in op
        assert op["responses"]["200"] == {
            "description": "ok response",
            "content": {"application/json": {"schema": {"$ref": "#/components/schemas/User"}}},
        }
        assert op["responses"]["default"]["content"]["application/json"]["schema"] == {
            "$ref": "#/components/schemas/ErrorModel",
        }

    def test_post_expands_request_body(self):
        doc = _doc()
        doc.add(new_operation("POST", "/users", "Create a user.", CreateUserParams, User, ErrorModel))
        data = _load(doc)
        op = data["paths"]["/users"]["post"]
        assert op["requestBody"] == {
            "required": True,
            "content": {
                "application/json": {
                    "schema": {
                        "type": "object",
                        "properties": {
                            "name": {"type": "string"},
                            "address": {"type": "object", "properties": {"street": {"type": "string"}}},
                        },
                    },
                },
            },
        }
        assert list(op["responses"]) == ["201", "default"]
        assert list(data["components"]["schemas"]) == ["ErrorModel", "User"]

    def test_post_without_params_or_body(self):
        doc = _doc()
        doc.add(new_operation("POST", "/checkin", "Check in."))
        op = _load(doc)["paths"]["/checkin"]["post"]
        assert "requestBody" not in op
        assert "parameters" not in op
        assert op["responses"]["204"] == {"description": "The operation completed successfully."}
        assert "content" not in op["responses"]["default"]

    def test_list_response_and_components(self):
        doc = _doc()
        doc.add(new_operation("GET", "/users", "List users.", None, list[User], ErrorModel))
        data = _load(doc)
        schema = data["paths"]["/users"]["get"]["responses"]["200"]["content"]["application/json"]["schema"]
        assert schema == {"type": "array", "items": {"$ref": "#/components/schemas/User"}}
        assert data["components"]["schemas"] == {
            "ErrorModel": {
                "type": "object",
                "properties": {"message": {"type": "string"}, "code": {"type": "integer", "format": "int64"}},
            },
            "User": {
                "type": "object",
                "properties": {"id": {"type": "integer", "format": "int64"}, "name": {"type": "string"}},
            },
        }

    def test_string_responses_are_plain_text(self):
        doc = _doc()
        doc.add(new_operation("GET", "/ping", "Ping.", None, "", ""))
        responses = _load(doc)["paths"]["/ping"]["get"]["responses"]
        assert responses["200"]["content"] == {"text/plain": {"schema": {"type": "string"}}}
        assert responses["default"]["content"] == {"text/plain": {"schema": {"type": "string"}}}

    def test_custom_responses(self):
        doc = _doc()
        doc.add(new_operation(
            "GET", "/teapot", "Brew.",
            None,
            new_response(203, "Non-authoritative.", User),
            Responses([new_response(418, "I'm a teapot.", ErrorModel)]),
        ))
        responses = _load(doc)["paths"]["/teapot"]["get"]["responses"]
        assert list(responses) == ["203", "418"]
        assert responses["418"]["description"] == "I'm a teapot."

    def test_empty_record_is_object(self):
        doc = _doc()
        doc.add(new_operation("GET", "/empty", "Empty.", None, Empty))
        data = _load(doc)
        schema = data["paths"]["/empty"]["get"]["responses"]["200"]["content"]["application/json"]["schema"]
        assert schema == {"type": "object"}
        assert data["components"]["schemas"] == {"Empty": {"type": "object"}}

    def test_generic_shapes(self):
        doc = _doc()
        doc.add(new_operation("GET", "/map", "Map.", None, {}))
        doc.add(new_operation("GET", "/slice", "Slice.", None, list[Any]))
        data = _load(doc)
        assert data["paths"]["/map"]["get"]["responses"]["200"]["content"]["application/json"]["schema"] == {
            "type": "object",
        }
        assert data["paths"]["/slice"]["get"]["responses"]["200"]["content"]["application/json"]["schema"] == {
            "type": "array",
            "items": {},
        }
        assert "components" not in data

    def test_tags_description(self):
        doc = _doc()
        doc.add(new_operation("GET", "/users", "List users.").with_description("All of them.").add_tags("users"))
        op = _load(doc)["paths"]["/users"]["get"]
        assert list(op) == ["tags", "operationId", "summary", "description", "responses"]
        assert op["tags"] == ["users"]


class TestOrdering:
    def _ops(self):
        return [
            new_operation("DELETE", "/users/:id", "Delete."),
            new_operation("PATCH", "/users/:id", "Patch."),
            new_operation("PUT", "/users/:id", "Replace."),
            new_operation("GET", "/users/:id", "Get."),
            new_operation("POST", "/users", "Create.", User, User),
            new_operation("GET", "/users", "List.", None, list[User]),
            new_operation("GET", "/admin", "Admin.", None, ErrorModel),
        ]

    def test_methods_and_paths_sorted(self):
        doc = _doc()
        for op in self._ops():
            doc.add(op)
        paths = _load(doc)["paths"]
        assert list(paths) == ["/admin", "/users", "/users/{id}"]
        assert list(paths["/users"]) == ["get", "post"]
        assert list(paths["/users/{id}"]) == ["get", "put", "patch", "delete"]

    def test_unknown_methods_independent_of_insertion_order(self):
        texts = []
        for methods in (("HEAD", "OPTIONS"), ("OPTIONS", "HEAD")):
            doc = _doc()
            for method in methods:
                doc.add(new_operation(method, "/x", method.title() + "."))
            texts.append(doc.build_yaml())
        assert texts[0] == texts[1]
        assert list(yaml.safe_load(texts[0])["paths"]["/x"]) == ["head", "options"]

    def test_output_is_independent_of_insertion_order(self):
        expected = None
        rng = random.Random(7)
        for _ in range(5):
            ops = self._ops()
            rng.shuffle(ops)
            doc = _doc()
            for op in ops:
                doc.add(op)
            text = doc.build_yaml()
            if expected is None:
                expected = text
            assert text == expected


class TestDataTypes:
    def test_datetime_is_a_data_type(self):
        doc = _doc()
        doc.add(new_operation("GET", "/time", "Time.", None, TimeResponse))
        doc.add(new_operation("GET", "/now", "Now.", None, datetime.datetime))
        data = _load(doc)
        assert list(data["components"]["schemas"]) == ["TimeResponse"]
        assert data["components"]["schemas"]["TimeResponse"]["properties"]["time"] == {
            "type": "string",
            "format": "date-time",
        }
        now = data["paths"]["/now"]["get"]["responses"]["200"]["content"]["application/json"]["schema"]
        assert now == {"type": "string", "format": "date-time"}

    def test_custom_data_type(self):
        doc = _doc()
        doc.define_data_type(Custom, simple_data_typer("boolean"))
        doc.add(new_operation("POST", "/stuff", "Update stuff.", CustomParams, CustomResponse))
        text = doc.build_yaml()
        data = yaml.safe_load(text)
        body = data["paths"]["/stuff"]["post"]["requestBody"]["content"]["application/json"]["schema"]
        assert body == {"type": "object", "properties": {"pcustom": {"type": "boolean"}}}
        assert data["components"]["schemas"] == {
            "CustomResponse": {"type": "object", "properties": {"custom": {"type": "boolean"}}},
        }
        assert "schemas/Custom'" not in text

    def test_defaults_keep_tag_text(self):
        @dataclass
        class Event:
            code: Annotated[str, Tags(json="code", default="010")]
            at: Annotated[datetime.datetime, Tags(json="at", default="2020-01-01T00:00:00Z")]
            retries: Annotated[int, Tags(json="retries", default="3")]

        doc = _doc()
        doc.add(new_operation("GET", "/events", "Events.", None, Event))
        properties = _load(doc)["components"]["schemas"]["Event"]["properties"]
        assert properties["code"] == {"type": "string", "default": "010"}
        assert properties["at"] == {"type": "string", "format": "date-time", "default": "2020-01-01T00:00:00Z"}
        assert properties["retries"] == {"type": "integer", "format": "int64", "default": 3}

    def test_override_builtin(self):
        def hello(_f, of):
            of["format"] = "hello"

        @dataclass
        class Counter:
            count: Annotated[Int32, Tags(json="count")]

        doc = _doc()
        doc.define_data_type(Int32, builtin_data_typer_for(Int32, hello))
        doc.add(new_operation("GET", "/count", "Count.", None, Counter))
        schema = _load(doc)["components"]["schemas"]["Counter"]
        assert schema["properties"]["count"] == {"type": "integer", "format": "hello"}

    def test_unsupported_type_writes_nothing(self):
        @dataclass
        class Odd:
            value: Annotated[int | str, Tags(json="value")]

        doc = _doc()
        doc.add(new_operation("GET", "/odd", "Odd.", None, Odd))
        stream = io.StringIO()
        with pytest.raises(UnsupportedTypeError):
            doc.write_yaml(stream)
        assert stream.getvalue() == ""


class TestRegistry:
    def test_duplicate_operation(self):
        doc = _doc()
        doc.add(new_operation("GET", "/users/:id", "Get."))
        with pytest.raises(DuplicateOperationError):
            doc.add(new_operation("get", "/users/{id}", "Again."))

    def test_operations_as_added(self):
        doc = _doc()
        op = new_operation("GET", "/users", "List.")
        assert doc.add(op) is op
        assert doc.operations == (op,)

    def test_write_yaml_file(self, tmp_path):
        doc = _doc()
        doc.add(new_operation("GET", "/users", "List.", None, list[User]))
        target = tmp_path / "openapi.yaml"
        doc.write_yaml_file(target)
        assert target.read_text(encoding="utf-8") == doc.build_yaml()


class TestSelectMap:
    def test_filter_and_rewrite(self):
        doc = _doc().add_jwt_security()
        doc.define_data_type(Custom, simple_data_typer("boolean"))
        doc.add(new_operation("GET", "/users", "List.", None, list[User]))
        doc.add(new_operation("GET", "/internal/stats", "Stats.", None, CustomResponse))

        def keep(op):
            if op.path.startswith("/internal"):
                return None
            op.path = "/v3" + op.path
            op.tags.append("v3")
            return op

        v3 = select_map(doc, keep)
        data = _load(v3)
        assert list(data["paths"]) == ["/v3/users"]
        assert data["paths"]["/v3/users"]["get"]["operationId"] == "getV3Users"
        assert data["paths"]["/v3/users"]["get"]["tags"] == ["v3"]
        assert "bearerAuth" in data["components"]["securitySchemes"]

        assert [op.path for op in doc.operations] == ["/users", "/internal/stats"]
        assert doc.operations[0].tags == []
        assert v3.data_types.is_data_type(new_field(Custom))
