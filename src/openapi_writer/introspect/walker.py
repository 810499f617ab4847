"""Enumerate the visible fields of a record type.

Record types are dataclasses, pydantic models, or any class with annotations.
To illustrate every arrangement the walker handles:

    class Demo:
        _simple_private: str
        simple: Annotated[str, Tags(json="simple")]
        inline: Annotated["Demo.Inline", Tags(json="inline")]
        struct: Annotated[Exported, Tags(json="struct")]
        _struct_private: Exported
        base: Annotated[_PrivateBase, Embedded()]
        _other: Annotated[ExportedBase, Embedded()]

        class Inline:
            field: Annotated[str, Tags(json="field")]

- _simple_private and _struct_private never show up in JSON, so they are skipped.
- simple, inline and struct are returned as fields; the renderer decides
  whether inline/struct are expanded or referenced.
- base and _other are embedded: they are never fields themselves. Their own
  visible fields are spliced in at their position, whatever the name of the
  embedded type or the field. A $ref cannot be mixed with sibling properties,
  so embedded records are always walked.
"""

from typing import Any, ClassVar, get_args, get_origin, get_type_hints

from pydantic import BaseModel

from openapi_writer.errors import InternalInvariantError
from openapi_writer.introspect.field import Field, new_field, normalize_annotation
from openapi_writer.introspect.kinds import EMPTY_TAGS, Embedded, Tags


def declared_fields(tp: Any) -> list[tuple[str, Any, tuple]]:
    """Return (name, annotation, metadata) for every declared field of ``tp``, in order.

    Private fields are included; ClassVars are not.
    """
    if not isinstance(tp, type) or get_origin(tp) is not None:
        return []

    if issubclass(tp, BaseModel):
        result = []
        for name, info in tp.model_fields.items():
            metadata = tuple(info.metadata)
            alias = info.serialization_alias or info.alias
            if alias:
                metadata += (Tags(json=alias),)
            result.append((name, info.annotation, metadata))
        return result

    result = []
    for name, hint in get_type_hints(tp, include_extras=True).items():
        if hint is ClassVar or get_origin(hint) is ClassVar:
            continue
        metadata: tuple = ()
        if hasattr(hint, "__metadata__"):
            metadata = hint.__metadata__
            hint = get_args(hint)[0]
        result.append((name, hint, metadata))
    return result


def has_declared_fields(tp: Any) -> bool:
    return bool(declared_fields(tp))


def enumerate_struct_fields(field: Field) -> list[Field]:
    """Return the visible fields of the record described by ``field``."""
    return _enumerate(field.type)


def _enumerate(tp: Any) -> list[Field]:
    result: list[Field] = []
    for name, annotation, metadata in declared_fields(tp):
        anonymous = any(isinstance(m, Embedded) for m in metadata)
        if not is_exported_field(name, anonymous):
            continue
        if anonymous:
            inner, _ = normalize_annotation(annotation)
            if inner is not None:
                result.extend(_enumerate(inner))
            continue
        if not name:
            # What sort of field is unnamed and not embedded?
            raise InternalInvariantError(
                f"Cannot read unnamed field of type {getattr(tp, '__name__', tp)}."
            )
        result.append(new_field(
            annotation,
            name=name,
            tags=_tags_from(metadata),
            from_struct_field=True,
        ))
    return result


def _tags_from(metadata: tuple) -> Tags:
    tags = EMPTY_TAGS
    for m in metadata:
        if isinstance(m, Tags):
            tags = tags.merged(**m)
    return tags


def is_exported_field(name: str, anonymous: bool = False) -> bool:
    """Return True if a field may appear in the document.

    Embedded and unnamed fields count as exported; the rest follow is_exported_name.
    """
    if not name or anonymous:
        return True
    return is_exported_name(name)


def is_exported_name(name: str) -> bool:
    """Return True if ``name`` is public (its last dotted part has no leading underscore).

    User => True, _User => False, mypkg.User => True.
    The empty string is ambiguous and raises InternalInvariantError.
    """
    if not name:
        raise InternalInvariantError("is_exported_name cannot be used with an empty string, it is ambiguous.")
    return not name.split(".")[-1].startswith("_")


def json_name(field: Field) -> str:
    """Return the serialized name of a record field.

    Only the ``json`` tag is consulted. "-" or no tag gives "", and a tag
    with options but no name (",omitempty") gives the declared field name.
    """
    tag = field.tags.get("json")
    if tag == "-":
        return ""
    parts = tag.split(",")
    if len(parts) > 1 and parts[0] == "":
        return field.name
    return parts[0]
