from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from inventory_catalog.schemas.fields import Requirement

BUILTIN_FIELD_NAMES = ("imei1", "imei2", "serial", "color", "storage", "ram", "version", "battery_health")


class InlineFieldData(BaseModel):
    name: str = ""
    key: str = ""
    type: str = "text"
    options: list[str] = []
    placeholder: Optional[str] = None

    @field_validator("name", "key", "type", mode="before")
    @classmethod
    def coerce_text(cls, value):
        return str(value or "").strip()

    @field_validator("options", mode="before")
    @classmethod
    def coerce_options(cls, value):
        if not isinstance(value, (list, tuple)):
            return []
        return [str(item).strip() for item in value if str(item or "").strip()]


class InlineFieldConfig(InlineFieldData):
    kind: Literal["inline"] = "inline"
    id: str
    requirement: Requirement = Requirement.OPTIONAL

    @field_validator("requirement", mode="before")
    @classmethod
    def parse_requirement(cls, value):
        return Requirement.parse(value)


class ReferenceFieldConfig(BaseModel):
    kind: Literal["reference"] = "reference"
    id: str
    field_id: str
    requirement: Requirement = Requirement.OPTIONAL
    # Copy of the pre-library inline data, used when field_id no longer resolves.
    legacy: Optional[InlineFieldData] = None

    @field_validator("requirement", mode="before")
    @classmethod
    def parse_requirement(cls, value):
        return Requirement.parse(value)


CategoryFieldConfig = Annotated[Union[InlineFieldConfig, ReferenceFieldConfig], Field(discriminator="kind")]


class CategoryCreate(BaseModel):
    name: str
    slug: Optional[str] = None
    auto_name_enabled: bool = False
    auto_name_template: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = str(value or "").strip()
        if not normalized:
            raise ValueError("nome da categoria é obrigatório")
        return normalized


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    auto_name_enabled: Optional[bool] = None
    auto_name_template: Optional[str] = None


class AddFieldIn(BaseModel):
    field_id: str
    requirement: Requirement = Requirement.OPTIONAL


class RequirementIn(BaseModel):
    requirement: Requirement

    @field_validator("requirement", mode="before")
    @classmethod
    def parse_requirement(cls, value):
        text = str(value or "").strip().lower()
        if text not in {"off", "hidden", "optional", "required"}:
            raise ValueError("requirement deve ser hidden, optional ou required")
        return Requirement.parse(text)


class EntryOrderIn(BaseModel):
    entry_ids: list[str]


class FormValuesIn(BaseModel):
    values: dict = {}
