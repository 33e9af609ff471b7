import re
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, field_validator, model_validator

FIELD_KEY_RE = re.compile(r"^[a-z][a-z0-9_]*$")


class FieldType(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    CAPITALIZE = "capitalize"
    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    TITLECASE = "titlecase"
    SENTENCE = "sentence"
    SLUG = "slug"
    NUMBER = "number"
    NUMERIC = "numeric"
    ALPHANUMERIC = "alphanumeric"
    PHONE = "phone"
    CPF = "cpf"
    CNPJ = "cnpj"
    CEP = "cep"
    DATE_BR = "date_br"
    DATE_BR_SHORT = "date_br_short"
    DATE_ISO = "date_iso"
    NCM = "ncm"
    EAN13 = "ean13"
    CEST = "cest"
    IMEI = "imei"
    BRL = "brl"
    SELECT = "select"
    CHECKBOX = "checkbox"
    TABLE_RELATION = "table_relation"

    @classmethod
    def parse(cls, value: Any) -> "FieldType":
        text = str(value or "").strip().lower()
        # Older category blobs used "dropdown" for select fields.
        if text == "dropdown":
            return cls.SELECT
        try:
            return cls(text)
        except ValueError:
            return cls.TEXT


class FieldCategory(str, Enum):
    BASIC = "basic"
    SPEC = "spec"
    PRICE = "price"
    FISCAL = "fiscal"
    LOGISTICS = "logistics"


class Requirement(str, Enum):
    HIDDEN = "hidden"
    OPTIONAL = "optional"
    REQUIRED = "required"

    @classmethod
    def parse(cls, value: Any) -> "Requirement":
        text = str(value.value if isinstance(value, Enum) else value or "").strip().lower()
        if text == "off":
            return cls.HIDDEN
        try:
            return cls(text)
        except ValueError:
            return cls.OPTIONAL


class TableConfig(BaseModel):
    table_name: str
    value_column: str = "id"
    label_column: str = "name"
    order_by: Optional[str] = None

    @field_validator("table_name", "value_column", "label_column")
    @classmethod
    def validate_identifier(cls, value: str) -> str:
        normalized = str(value or "").strip()
        if not re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", normalized):
            raise ValueError("identificador de tabela/coluna inválido")
        return normalized


def _clean_options(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValueError("options deve ser uma lista")
    return [str(item).strip() for item in value if str(item or "").strip()]


class FieldDefinitionCreate(BaseModel):
    key: str
    label: str
    category: FieldCategory = FieldCategory.SPEC
    field_type: FieldType = FieldType.TEXT
    options: list[str] = []
    validation: dict = {}
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    table_config: Optional[TableConfig] = None
    display_order: Optional[int] = None

    @field_validator("key")
    @classmethod
    def validate_key(cls, value: str) -> str:
        normalized = str(value or "").strip()
        if not FIELD_KEY_RE.fullmatch(normalized):
            raise ValueError("key deve conter apenas letras minúsculas, números e _")
        return normalized

    @field_validator("label")
    @classmethod
    def validate_label(cls, value: str) -> str:
        normalized = str(value or "").strip()
        if not normalized:
            raise ValueError("label é obrigatório")
        return normalized

    @field_validator("options", mode="before")
    @classmethod
    def clean_options(cls, value):
        return _clean_options(value)

    @model_validator(mode="after")
    def validate_shape(self):
        if self.field_type == FieldType.SELECT and not self.options:
            raise ValueError("campos do tipo select precisam de ao menos uma opção")
        if self.field_type == FieldType.TABLE_RELATION and self.table_config is None:
            raise ValueError("campos do tipo table_relation precisam de table_config")
        return self


class FieldDefinitionUpdate(BaseModel):
    # key is accepted so clients can send the whole form back; it is never applied.
    key: Optional[str] = None
    label: Optional[str] = None
    category: Optional[FieldCategory] = None
    field_type: Optional[FieldType] = None
    options: Optional[list[str]] = None
    validation: Optional[dict] = None
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    table_config: Optional[TableConfig] = None
    display_order: Optional[int] = None

    @field_validator("options", mode="before")
    @classmethod
    def clean_options(cls, value):
        if value is None:
            return None
        return _clean_options(value)

    @field_validator("label")
    @classmethod
    def validate_label(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        normalized = str(value).strip()
        if not normalized:
            raise ValueError("label não pode ser vazio")
        return normalized


class FieldOrderIn(BaseModel):
    ids: list[str]


class EnrichedField(BaseModel):
    entry_id: str
    id: Optional[str] = None
    key: str
    label: str
    category: Optional[FieldCategory] = None
    field_type: FieldType = FieldType.TEXT
    options: list[str] = []
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    table_config: Optional[TableConfig] = None
    is_system: bool = False
    display_order: int = 999
    requirement: Requirement = Requirement.OPTIONAL
    source: str = "library"  # library | inline | builtin | placeholder
    unresolved: bool = False


class LibraryField(BaseModel):
    """Tenant field definition as served by the field library (cache-safe, detached from the session)."""

    id: str
    key: str
    label: str
    category: FieldCategory = FieldCategory.SPEC
    field_type: FieldType = FieldType.TEXT
    options: list[str] = []
    validation: dict = {}
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    table_config: Optional[TableConfig] = None
    is_system: bool = False
    display_order: int = 999
