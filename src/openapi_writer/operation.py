"""Endpoint definitions: operations, responses and their derived forms.

See https://swagger.io/specification/#operationObject
"""

import dataclasses
import re
from typing import Any

from pydantic import BaseModel

from openapi_writer.introspect.field import Field, new_field


class Operation(BaseModel):
    """The definition of one endpoint (method and path)."""

    # HTTP verb like GET or POST.
    method: str
    # Route with colon parameters, like /users/:id.
    path: str
    summary: str = ""
    # Optional longer description, CommonMark allowed.
    description: str = ""
    # Record type (or instance) describing path/query/header parameters and the
    # request body. None if there are no parameters.
    params: Any = None
    # Shape of a successful response, or a Response/Responses for full control.
    # None means a 204 with no body.
    return_ok: Any = None
    # Shape of the error response, written under the "default" code unless
    # a Response/Responses is given.
    return_err: Any = None
    tags: list[str] = []

    def with_description(self, description: str) -> "Operation":
        """Return a copy with the description set."""
        return self.model_copy(update={"description": description})

    def add_tags(self, *tags: str) -> "Operation":
        """Return a copy with ``tags`` appended."""
        return self.model_copy(update={"tags": [*self.tags, *tags]})


def new_operation(
    method: str,
    path: str,
    summary: str,
    params: Any = None,
    return_ok: Any = None,
    return_err: Any = None,
) -> Operation:
    return Operation(
        method=method,
        path=path,
        summary=summary,
        params=params,
        return_ok=return_ok,
        return_err=return_err,
    )


class Response(BaseModel):
    """A single response of an operation.

    Use Response and Responses as return_ok/return_err when the default
    codes and descriptions do not fit.
    See https://swagger.io/docs/specification/describing-responses/
    """

    code: str
    description: str
    shape: Any = None

    @property
    def field(self) -> Field:
        return new_field(self.shape)


class Responses(list):
    """A list of Response objects."""


def new_response(code: int | str, description: str, shape: Any = None) -> Response:
    """Return a Response; ``code`` is an HTTP status code, or -1 for "default"."""
    strcode = "default" if code == -1 else str(code)
    return Response(code=strcode, description=description, shape=shape)


NO_CONTENT_DESCRIPTION = "The operation completed successfully."
OK_DESCRIPTION = "ok response"
ERROR_DESCRIPTION = "error response"


def responses_for(op: Operation) -> list[Response]:
    """Return the success responses followed by the error responses of ``op``."""
    responses: list[Response] = []

    if isinstance(op.return_ok, Responses):
        responses.extend(op.return_ok)
    elif isinstance(op.return_ok, Response):
        responses.append(op.return_ok)
    elif op.return_ok is None:
        responses.append(new_response(204, NO_CONTENT_DESCRIPTION))
    elif new_method(op.method) == "post":
        responses.append(new_response(201, OK_DESCRIPTION, op.return_ok))
    else:
        responses.append(new_response(200, OK_DESCRIPTION, op.return_ok))

    if isinstance(op.return_err, Responses):
        responses.extend(op.return_err)
    elif isinstance(op.return_err, Response):
        responses.append(op.return_err)
    else:
        responses.append(new_response(-1, ERROR_DESCRIPTION, op.return_err))

    return responses


def new_method(s: str) -> str:
    """Return the lowercase form of an HTTP verb: "POST" => "post"."""
    return s.lower()


_PATH_PARAM = re.compile(r"/:([A-Za-z0-9]+)")


def new_path(s: str) -> str:
    """Convert a colon-style route to an OpenAPI path: "/users/:id" => "/users/{id}"."""
    return _PATH_PARAM.sub(r"/{\1}", s)


_OPERATION_ID_CLEAN = re.compile(r"[^A-Za-z0-9_]")


def new_operation_id(op: Operation) -> str:
    """Return an operationId unique for the method and path: GET /users/:id => getUsersId."""
    path = op.path.replace("/", "_").replace("-", "_")
    path = _OPERATION_ID_CLEAN.sub("", path).strip("_")
    pieces = [p for p in path.split("_") if p]
    return op.method.lower() + "".join(p[0].upper() + p[1:] for p in pieces)


METHOD_WEIGHTS = {
    "get": 1,
    "post": 2,
    "put": 3,
    "patch": 4,
    "delete": 5,
}


@dataclasses.dataclass(frozen=True)
class InternalOperation:
    """An Operation with its descriptors and derived names computed once."""

    original: Operation
    method: str
    path: str
    operation_id: str
    summary: str
    description: str
    params: Field
    responses: tuple[Response, ...]
    tags: tuple[str, ...]

    @classmethod
    def from_operation(cls, op: Operation) -> "InternalOperation":
        return cls(
            original=op,
            method=new_method(op.method),
            path=new_path(op.path),
            operation_id=new_operation_id(op),
            summary=op.summary,
            description=op.description,
            params=new_field(op.params),
            responses=tuple(responses_for(op)),
            tags=tuple(op.tags),
        )

    def use_request_body(self) -> bool:
        """POST and PUT operations with parameters get a requestBody; nothing else does."""
        return self.method in ("post", "put") and not self.params.is_nil()

    def sort_key(self) -> tuple[str, int, str]:
        # Unknown methods share a weight, so the name breaks the tie.
        return self.path, METHOD_WEIGHTS.get(self.method, len(METHOD_WEIGHTS) + 1), self.method
