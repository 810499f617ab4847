"""Data typers for ``validate`` tags in the go-validator style.

    @dataclass
    class Params:
        name: Annotated[str, Tags(query="name", validate="min=1,max=5")]

    register_validator_data_types(doc)

renders the name parameter with ``minLength: 1`` and ``maxLength: 5``.
"""

from typing import TYPE_CHECKING

from openapi_writer.generator.data_types import (
    BUILTIN_DATA_TYPE_VALUES,
    ObjectFields,
    builtin_data_typer_for,
    parse_scalar,
)
from openapi_writer.introspect.field import Field
from openapi_writer.introspect.kinds import Kind

if TYPE_CHECKING:
    from openapi_writer.document import Document


def parse_validations(field: Field, of: ObjectFields) -> None:
    """Translate the rules of the field's ``validate`` tag into schema attributes."""
    is_string = field.kind is Kind.STRING
    for rule in field.tags.get("validate").split(","):
        name, _, arg = rule.partition("=")
        if name == "len":
            of["minLength"] = parse_scalar(arg)
            of["maxLength"] = parse_scalar(arg)
        elif name == "min":
            of["minLength" if is_string else "minimum"] = parse_scalar(arg)
        elif name == "max":
            of["maxLength" if is_string else "maximum"] = parse_scalar(arg)
        elif name == "regexp":
            of["pattern"] = arg
        elif name == "nonzero":
            of["required"] = True


def register_validator_data_types(document: "Document") -> None:
    """Override every builtin data type with one that also parses ``validate`` tags."""
    for value in BUILTIN_DATA_TYPE_VALUES:
        document.define_data_type(value, builtin_data_typer_for(value, parse_validations))
