from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from .errors import DecodeError

IMAGE_PROPERTY = "container.image"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Credential(_WireModel):
    access_token: str = Field(..., alias="accessToken")
    token_type: str = Field(..., alias="tokenType")
    user_name: str = Field(..., alias="username")
    roles: list[str] | None = None

    @field_validator("access_token")
    @classmethod
    def _header_safe(cls, v: str) -> str:
        # Sent back verbatim in the Authorization header.
        if not v.isascii():
            raise ValueError("access token must be ASCII")
        return v


class ComponentSpec(_WireModel):
    name: str = Field(..., description="Runtime instance name")
    component_type: str = Field(..., alias="type")
    properties: dict[str, str] | None = None

    @property
    def image(self) -> str | None:
        return (self.properties or {}).get(IMAGE_PROPERTY)


class ObjectRef(_WireModel):
    site_id: str = Field(..., alias="siteId")
    name: str
    group: str
    version: str
    kind: str
    scope: str


class StagedProperties(_WireModel):
    components: list[ComponentSpec] | None = None
    removed_components: list[ComponentSpec] | None = Field(None, alias="removed-components")

    def desired_components(self) -> list[ComponentSpec]:
        # A catalog that only declares removals carries no component list.
        return list(self.components or [])


class CatalogSpec(_WireModel):
    site_id: str = Field(..., alias="siteId")
    name: str
    catalog_type: str = Field(..., alias="type")
    properties: StagedProperties
    object_ref: ObjectRef | None = Field(None, alias="objectRef")
    generation: str


class CatalogStatus(_WireModel):
    properties: dict[str, str] | None = None


class CatalogState(_WireModel):
    id: str
    spec: CatalogSpec
    status: CatalogStatus | None = None


_catalog_list = TypeAdapter(list[CatalogState])


def parse_credential(payload: Any) -> Credential:
    try:
        return Credential.model_validate(payload)
    except ValidationError as e:
        raise DecodeError(f"token error: {e}") from e


def parse_catalogs(payload: Any) -> list[CatalogState]:
    try:
        return _catalog_list.validate_python(payload)
    except ValidationError as e:
        raise DecodeError(f"catalogs error: {e}") from e
