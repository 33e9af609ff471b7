"""Filter/sort/page requests from the admin list screens, applied to a mapped model.

Filter values arrive as JSON scalars or strings and are coerced to the column's
Python type before comparison; unknown and tenant-internal columns are skipped.
"""
import operator
import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation

from fastapi import HTTPException
from sqlalchemy import asc, desc
from sqlalchemy.orm import Query

from inventory_catalog.schemas.universal import UniversalQuery

TRUE_WORDS = frozenset({"1", "true", "yes", "sim", "s"})
FALSE_WORDS = frozenset({"0", "false", "no", "nao", "não", "n"})

_COMPARATORS = {
    "=": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}


class InvalidFilterValue(HTTPException):
    def __init__(self, column_key: str, expected: str):
        super().__init__(status_code=400, detail=f'Valor de filtro inválido para o campo "{column_key}" ({expected})')


def _python_type(column):
    try:
        return column.property.columns[0].type.python_type
    except (AttributeError, IndexError, NotImplementedError):
        return None


def _as_bool(key: str, value) -> bool:
    if isinstance(value, bool):
        return value
    word = str(value or "").strip().lower()
    if word in TRUE_WORDS:
        return True
    if word in FALSE_WORDS:
        return False
    raise InvalidFilterValue(key, "sim/não")


def _as_number(key: str, value, kind):
    if isinstance(value, bool):
        raise InvalidFilterValue(key, "número")
    if isinstance(value, (int, float, Decimal)):
        return kind(str(value)) if kind is Decimal else kind(value)
    # pt-BR users type decimal commas.
    text = str(value or "").strip().replace(",", ".")
    try:
        return kind(text)
    except (ValueError, InvalidOperation):
        raise InvalidFilterValue(key, "número")


def _is_day(value) -> bool:
    if not isinstance(value, str) or len(value.strip()) != 10:
        return False
    try:
        date.fromisoformat(value.strip())
    except ValueError:
        return False
    return True


def _as_datetime(key: str, value) -> datetime:
    if isinstance(value, datetime):
        moment = value
    elif _is_day(value):
        moment = datetime.combine(date.fromisoformat(value.strip()), datetime.min.time())
    else:
        try:
            moment = datetime.fromisoformat(str(value or "").strip().replace("Z", "+00:00"))
        except ValueError:
            raise InvalidFilterValue(key, "data")
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def _as_uuid(key: str, value) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value or "").strip())
    except ValueError:
        raise InvalidFilterValue(key, "uuid")


def _coerce_filter_value(column, value):
    kind = _python_type(column)
    if kind is bool:
        return _as_bool(column.key, value)
    if kind in (int, float, Decimal):
        return _as_number(column.key, value, kind)
    if kind is datetime:
        return _as_datetime(column.key, value)
    if kind is uuid.UUID:
        return _as_uuid(column.key, value)
    return value


def _column(model, name: str, hidden):
    if name in hidden:
        return None
    column = getattr(model, name, None)
    return column if column is not None and hasattr(column, "property") else None


def _condition(column, op: str, raw):
    value = _coerce_filter_value(column, raw)
    if op == "~":
        return column.ilike(f"%{value}%")
    if _python_type(column) is datetime and op in ("=", "!=") and _is_day(raw):
        # A bare date on a timestamp column matches the whole day.
        same_day = (column >= value) & (column < value + timedelta(days=1))
        return same_day if op == "=" else ~same_day
    return _COMPARATORS[op](column, value)


def apply_universal_query(q: Query, model, uq: UniversalQuery, hidden=frozenset()) -> Query:
    for clause in uq.filters:
        column = _column(model, clause.field, hidden)
        if column is not None:
            q = q.filter(_condition(column, clause.op, clause.value))
    for clause in uq.sort:
        column = _column(model, clause.field, hidden)
        if column is not None:
            q = q.order_by(desc(column) if clause.dir == "desc" else asc(column))
    return q


def run_universal_query(q: Query, model, uq: UniversalQuery, hidden=frozenset()) -> tuple[list, int]:
    """Rows of the requested page and the unpaged total."""
    q = apply_universal_query(q, model, uq, hidden)
    total = q.order_by(None).count()
    return q.offset(uq.page.offset).limit(uq.page.limit).all(), total
