"""Display masks and format checks for text-like field types.

Masks only reshape what the user typed for display; the checks are the strict
form of the same rules and are applied only where a field demands it.
"""
from __future__ import annotations

import re
import unicodedata
from datetime import datetime

_NON_DIGIT = re.compile(r"\D")


def digits(value) -> str:
    return _NON_DIGIT.sub("", str(value or ""))


def capitalize(value: str) -> str:
    return value[:1].upper() + value[1:].lower()


def titlecase(value: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in value.lower().split(" "))


def sentence(value: str) -> str:
    return re.sub(r"(^\w|\.\s+\w)", lambda match: match.group(0).upper(), value)


def slug(value: str) -> str:
    text = unicodedata.normalize("NFD", value.lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-")


def phone(value: str) -> str:
    raw = digits(value)
    if len(raw) <= 10:
        return re.sub(r"^(\d{2})(\d{4})(\d{4})$", r"(\1) \2-\3", raw)
    return re.sub(r"^(\d{2})(\d{5})(\d{4})$", r"(\1) \2-\3", raw[:11])


def cpf(value: str) -> str:
    return re.sub(r"^(\d{3})(\d{3})(\d{3})(\d{2})$", r"\1.\2.\3-\4", digits(value)[:11])


def cnpj(value: str) -> str:
    return re.sub(r"^(\d{2})(\d{3})(\d{3})(\d{4})(\d{2})$", r"\1.\2.\3/\4-\5", digits(value)[:14])


def cep(value: str) -> str:
    return re.sub(r"^(\d{5})(\d{3})$", r"\1-\2", digits(value)[:8])


def _split_date(raw: str, sizes: tuple[int, ...], sep: str) -> str:
    parts = []
    start = 0
    for size in sizes:
        if start >= len(raw):
            break
        parts.append(raw[start:start + size])
        start += size
    return sep.join(parts)


def date_br(value: str) -> str:
    return _split_date(digits(value)[:8], (2, 2, 4), "/")


def date_br_short(value: str) -> str:
    return _split_date(digits(value)[:6], (2, 2, 2), "/")


def date_iso(value: str) -> str:
    return _split_date(digits(value)[:8], (4, 2, 2), "-")


def limit_digits(size: int):
    def _format(value: str) -> str:
        return digits(value)[:size]
    return _format


def alphanumeric(value: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "", value)


def _digit_count(size: int):
    def _check(value: str) -> bool:
        text = str(value or "").strip()
        return bool(re.fullmatch(r"[\d.\-/ ]+", text)) and len(digits(text)) == size
    return _check


def phone_valid(value: str) -> bool:
    return len(digits(value)) in {10, 11} and not re.search(r"[A-Za-z]", str(value))


def _date_check(pattern: str):
    def _check(value: str) -> bool:
        try:
            datetime.strptime(str(value or "").strip(), pattern)
        except ValueError:
            return False
        return True
    return _check


def numeric_valid(value: str) -> bool:
    return str(value or "").strip().isdigit()


cpf_valid = _digit_count(11)
cnpj_valid = _digit_count(14)
cep_valid = _digit_count(8)
ncm_valid = _digit_count(8)
ean13_valid = _digit_count(13)
cest_valid = _digit_count(7)
date_br_valid = _date_check("%d/%m/%Y")
date_br_short_valid = _date_check("%d/%m/%y")
date_iso_valid = _date_check("%Y-%m-%d")
