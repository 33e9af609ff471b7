from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Iterable

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError

from inventory_catalog.schemas.fields import EnrichedField, FieldType, Requirement, TableConfig
from inventory_catalog.services import field_formats as fmt
from inventory_catalog.services.pricing import format_brl

_LOG = logging.getLogger("inventory_catalog.rendering")

IDENTIFIER_KEYS = frozenset({"imei1", "imei2"})
IDENTIFIER_LENGTH = 15

OptionsLoader = Callable[[TableConfig], list[dict]]


class WidgetKind(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    CURRENCY = "currency"
    SELECT = "select"
    CHECKBOX = "checkbox"
    TABLE_SELECT = "table_select"


@dataclass(frozen=True)
class WidgetSpec:
    kind: WidgetKind
    # Display mask; never changes the bound value.
    formatter: Callable[[str], str] | None = None
    # Strict format rule, enforced only for required fields.
    check: Callable[[str], bool] | None = None


WIDGETS: dict[FieldType, WidgetSpec] = {
    FieldType.TEXT: WidgetSpec(WidgetKind.TEXT),
    FieldType.TEXTAREA: WidgetSpec(WidgetKind.TEXTAREA),
    FieldType.CAPITALIZE: WidgetSpec(WidgetKind.TEXT, fmt.capitalize),
    FieldType.UPPERCASE: WidgetSpec(WidgetKind.TEXT, str.upper),
    FieldType.LOWERCASE: WidgetSpec(WidgetKind.TEXT, str.lower),
    FieldType.TITLECASE: WidgetSpec(WidgetKind.TEXT, fmt.titlecase),
    FieldType.SENTENCE: WidgetSpec(WidgetKind.TEXT, fmt.sentence),
    FieldType.SLUG: WidgetSpec(WidgetKind.TEXT, fmt.slug),
    FieldType.NUMBER: WidgetSpec(WidgetKind.NUMBER),
    FieldType.NUMERIC: WidgetSpec(WidgetKind.TEXT, fmt.digits, fmt.numeric_valid),
    FieldType.ALPHANUMERIC: WidgetSpec(WidgetKind.TEXT, fmt.alphanumeric),
    FieldType.PHONE: WidgetSpec(WidgetKind.TEXT, fmt.phone, fmt.phone_valid),
    FieldType.CPF: WidgetSpec(WidgetKind.TEXT, fmt.cpf, fmt.cpf_valid),
    FieldType.CNPJ: WidgetSpec(WidgetKind.TEXT, fmt.cnpj, fmt.cnpj_valid),
    FieldType.CEP: WidgetSpec(WidgetKind.TEXT, fmt.cep, fmt.cep_valid),
    FieldType.DATE_BR: WidgetSpec(WidgetKind.TEXT, fmt.date_br, fmt.date_br_valid),
    FieldType.DATE_BR_SHORT: WidgetSpec(WidgetKind.TEXT, fmt.date_br_short, fmt.date_br_short_valid),
    FieldType.DATE_ISO: WidgetSpec(WidgetKind.TEXT, fmt.date_iso, fmt.date_iso_valid),
    FieldType.NCM: WidgetSpec(WidgetKind.TEXT, fmt.limit_digits(8), fmt.ncm_valid),
    FieldType.EAN13: WidgetSpec(WidgetKind.TEXT, fmt.limit_digits(13), fmt.ean13_valid),
    FieldType.CEST: WidgetSpec(WidgetKind.TEXT, fmt.limit_digits(7), fmt.cest_valid),
    FieldType.IMEI: WidgetSpec(WidgetKind.TEXT, fmt.limit_digits(IDENTIFIER_LENGTH)),
    FieldType.BRL: WidgetSpec(WidgetKind.CURRENCY),
    FieldType.SELECT: WidgetSpec(WidgetKind.SELECT),
    FieldType.CHECKBOX: WidgetSpec(WidgetKind.CHECKBOX),
    FieldType.TABLE_RELATION: WidgetSpec(WidgetKind.TABLE_SELECT),
}

_unmapped = sorted(item.value for item in FieldType if item not in WIDGETS)
if _unmapped:
    raise RuntimeError("field types without widget: " + ", ".join(_unmapped))


@dataclass
class FieldWidget:
    key: str
    label: str
    kind: str
    field_type: str
    requirement: str
    required: bool
    value: Any = None
    display_value: Any = None
    placeholder: str | None = None
    help_text: str | None = None
    options: list[dict] = field(default_factory=list)
    error: str | None = None
    missing: bool = False

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def widget_for(field_type: FieldType) -> WidgetSpec:
    return WIDGETS[field_type]


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def _is_identifier(item: EnrichedField) -> bool:
    return item.key in IDENTIFIER_KEYS or item.field_type == FieldType.IMEI


def _parse_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip().replace(",", "."))
    except (InvalidOperation, ValueError):
        return None
    return parsed if parsed.is_finite() else None


def _visible(fields: Iterable[EnrichedField]) -> list[EnrichedField]:
    return [item for item in fields if item.requirement != Requirement.HIDDEN]


def _load_options(item: EnrichedField, load_options: OptionsLoader | None) -> tuple[list[dict], str | None]:
    if item.field_type == FieldType.SELECT:
        return [{"value": option, "label": option} for option in item.options], None
    if item.field_type != FieldType.TABLE_RELATION:
        return [], None
    if item.table_config is None or load_options is None:
        return [], "Opções indisponíveis para este campo"
    try:
        return load_options(item.table_config), None
    except (HTTPException, SQLAlchemyError):
        _LOG.warning("table options failed key=%s table=%s", item.key, item.table_config.table_name, exc_info=True)
        return [], "Não foi possível carregar as opções deste campo"


def field_error(item: EnrichedField, value: Any, options: list[dict] | None = None) -> str | None:
    """Validation message for one bound value, or None when it is acceptable."""
    required = item.requirement == Requirement.REQUIRED
    if is_empty(value):
        return f"{item.label} é obrigatório" if required else None

    if _is_identifier(item):
        text = str(value).strip()
        if not text.isdigit() or len(text) != IDENTIFIER_LENGTH:
            return f"{item.label} deve ter exatamente {IDENTIFIER_LENGTH} dígitos"
        return None

    spec = widget_for(item.field_type)
    if spec.kind in {WidgetKind.NUMBER, WidgetKind.CURRENCY}:
        parsed = _parse_decimal(value)
        if parsed is None:
            return f"{item.label} deve ser um número"
        if spec.kind == WidgetKind.CURRENCY and parsed != parsed.to_integral_value():
            return f"{item.label} deve ser informado em centavos"
        return None
    if spec.kind == WidgetKind.CHECKBOX:
        if not isinstance(value, bool):
            return f"{item.label} deve ser verdadeiro ou falso"
        return None
    if spec.kind in {WidgetKind.SELECT, WidgetKind.TABLE_SELECT}:
        allowed = {str(option.get("value")) for option in options or []}
        if str(value) not in allowed:
            return f"Opção inválida para {item.label}"
        return None
    if required and spec.check is not None and not spec.check(str(value)):
        return f"{item.label} está em formato inválido"
    return None


def validate_values(
    fields: Iterable[EnrichedField],
    values: dict | None,
    load_options: OptionsLoader | None = None,
) -> dict[str, str]:
    """All field-level failures at once, keyed by field key. Hidden and unresolved fields are skipped."""
    payload = values if isinstance(values, dict) else {}
    errors: dict[str, str] = {}
    for item in _visible(fields):
        if item.unresolved:
            continue
        options, load_error = _load_options(item, load_options)
        value = payload.get(item.key)
        if load_error and not is_empty(value):
            errors[item.key] = load_error
            continue
        message = field_error(item, value, options)
        if message:
            errors[item.key] = message
    return errors


def display_value(item: EnrichedField, value: Any) -> Any:
    if is_empty(value):
        return value
    spec = widget_for(item.field_type)
    if spec.kind == WidgetKind.CURRENCY:
        parsed = _parse_decimal(value)
        return format_brl(int(parsed)) if parsed is not None else value
    if spec.formatter is not None and isinstance(value, str):
        return spec.formatter(value)
    return value


def build_form(
    fields: Iterable[EnrichedField],
    values: dict | None,
    load_options: OptionsLoader | None = None,
    *,
    with_errors: bool = True,
) -> list[FieldWidget]:
    payload = values if isinstance(values, dict) else {}
    widgets: list[FieldWidget] = []
    for item in _visible(fields):
        value = payload.get(item.key)
        spec = widget_for(item.field_type)
        widget = FieldWidget(
            key=item.key,
            label=item.label,
            kind=spec.kind.value,
            field_type=item.field_type.value,
            requirement=item.requirement.value,
            required=item.requirement == Requirement.REQUIRED,
            value=value,
            placeholder=item.placeholder,
            help_text=item.help_text,
        )
        if item.unresolved:
            widget.missing = True
            widget.error = f"Campo não encontrado (ID: {item.id or item.entry_id})"
            widgets.append(widget)
            continue
        options, load_error = _load_options(item, load_options)
        widget.options = options
        widget.display_value = display_value(item, value)
        if load_error:
            widget.error = load_error
        elif with_errors:
            widget.error = field_error(item, value, options)
        widgets.append(widget)
    return widgets


def normalize_input(item: EnrichedField, raw: Any) -> Any:
    spec = widget_for(item.field_type)
    if spec.kind == WidgetKind.CHECKBOX:
        if isinstance(raw, str):
            return raw.strip().lower() in {"1", "true", "on", "yes", "sim"}
        return bool(raw)
    if _is_identifier(item):
        return fmt.digits(raw)[:IDENTIFIER_LENGTH]
    if spec.kind == WidgetKind.CURRENCY:
        # Currency inputs type digits right-to-left: "12345" is R$ 123,45.
        cents = fmt.digits(raw)
        return int(cents) if cents else None
    if isinstance(raw, str):
        return raw.strip()
    return raw


def apply_change(
    fields: Iterable[EnrichedField],
    values: dict | None,
    key: str,
    raw: Any,
    on_change: Callable[[str, Any], None],
) -> dict:
    """Normalise one widget input, report it through on_change and return the new value map."""
    item = next((candidate for candidate in fields if candidate.key == key), None)
    if item is None:
        raise KeyError(key)
    value = normalize_input(item, raw)
    updated = dict(values or {})
    updated[key] = value
    on_change(key, value)
    return updated
