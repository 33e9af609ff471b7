"""Automatic product names from a category's naming template.

Templates use Portuguese placeholders, e.g. "{modelo}, {ram}/{armazenamento} - {versao}".
Categories saved before templates existed carry a field list and separator instead.
"""
from __future__ import annotations

import re
from typing import Any

PLACEHOLDER_FIELDS = {
    "marca": "brand",
    "modelo": "model",
    "sku": "sku",
    "ram": "ram",
    "armazenamento": "storage",
    "cor": "color",
    "versao": "version",
    "bateria": "battery_health",
    "serial": "serial",
    "imei1": "imei1",
    "imei2": "imei2",
    "ncm": "ncm",
    "cest": "cest",
    "peso": "weight_kg",
}

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")

# Applied in order after substitution, so missing values do not leave dangling separators.
_CLEANUP: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r",\s*,"), ","),
    (re.compile(r"/\s*/"), "/"),
    (re.compile(r"-\s*-"), "-"),
    (re.compile(r"\(\s*\)"), ""),
    (re.compile(r",\s*$"), ""),
    (re.compile(r"^\s*,"), ""),
    (re.compile(r",\s*-"), " -"),
    (re.compile(r"-\s*,"), ","),
    (re.compile(r"/\s*-"), " -"),
    (re.compile(r"-\s*/"), "/"),
    (re.compile(r"\s+"), " "),
    (re.compile(r"^[\s,/-]+|[\s,/-]+$"), ""),
)


def _lookup(product_data: dict, field_name: str) -> str:
    specs = product_data.get("specs")
    if isinstance(specs, dict) and specs.get(field_name) is not None:
        value = specs[field_name]
    else:
        value = product_data.get(field_name)
    if value is None or value is False:
        return ""
    return str(value).strip()


def _from_template(template: str, product_data: dict) -> str:
    def _replace(match: re.Match) -> str:
        name = match.group(1)
        return _lookup(product_data, PLACEHOLDER_FIELDS.get(name.lower(), name))

    result = _PLACEHOLDER_RE.sub(_replace, template)
    for pattern, replacement in _CLEANUP:
        result = pattern.sub(replacement, result)
    return result.strip()


def generate_product_name(config: dict | None, product_data: dict | None) -> str:
    """Empty string when naming is off or nothing could be filled in."""
    config = config or {}
    data: dict[str, Any] = product_data or {}
    if not config.get("auto_name_enabled"):
        return ""
    template = str(config.get("auto_name_template") or "").strip()
    if template:
        return _from_template(template, data)

    fields = config.get("auto_name_fields") or []
    if not isinstance(fields, list) or not fields:
        return ""
    separator = config.get("auto_name_separator") or " "
    parts = [_lookup(data, str(name)) for name in fields]
    return separator.join(part for part in parts if part)
