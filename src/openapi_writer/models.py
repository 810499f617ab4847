"""Document-level metadata models.

Info, tags, servers and security schemes are plain accumulations;
each model knows how to render its own OpenAPI object.
"""

from pydantic import BaseModel

from openapi_writer.generator.data_types import ObjectFields


class Contact(BaseModel):
    """See https://swagger.io/specification/#contactObject"""

    name: str = ""
    url: str = ""
    email: str = ""

    def is_empty(self) -> bool:
        return not (self.name or self.url or self.email)

    def to_dict(self) -> dict:
        return {k: v for k, v in (("name", self.name), ("url", self.url), ("email", self.email)) if v}


class License(BaseModel):
    """See https://swagger.io/specification/#licenseObject"""

    name: str = ""
    url: str = ""

    def is_empty(self) -> bool:
        return not (self.name or self.url)

    def to_dict(self) -> dict:
        return {k: v for k, v in (("name", self.name), ("url", self.url)) if v}


class Server(BaseModel):
    """See https://swagger.io/specification/#serverObject"""

    url: str
    description: str = ""

    def to_dict(self) -> dict:
        return {"url": self.url, "description": self.description}


class ApiTag(BaseModel):
    """A document-level tag used to group operations."""

    name: str
    description: str = ""

    def to_dict(self) -> dict:
        return {"name": self.name, "description": self.description}


class SecurityScheme(BaseModel):
    """A security scheme, also applied globally as a security requirement.

    See https://swagger.io/specification/#securitySchemeObject
    """

    id: str
    attributes: dict[str, str]

    @classmethod
    def basic(cls) -> "SecurityScheme":
        """https://swagger.io/docs/specification/authentication/basic-authentication/"""
        return cls(id="basicAuth", attributes={"type": "http", "scheme": "basic"})

    @classmethod
    def jwt(cls) -> "SecurityScheme":
        """https://swagger.io/docs/specification/authentication/bearer-authentication/"""
        return cls(id="bearerAuth", attributes={"type": "http", "scheme": "bearer", "bearerFormat": "JWT"})

    @classmethod
    def api_key(cls, location: str, name: str) -> "SecurityScheme":
        """https://swagger.io/docs/specification/authentication/api-keys/"""
        return cls(id="apiKeyAuth", attributes={"type": "apiKey", "in": location, "name": name})

    def to_dict(self) -> dict:
        return ObjectFields(self.attributes).sorted()
