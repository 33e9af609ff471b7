import unittest
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from fastapi import HTTPException
from sqlalchemy import Boolean, DateTime, Float, Integer, Numeric, String, create_engine
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from inventory_catalog.schemas.universal import FilterClause, Page, SortClause, UniversalQuery
from inventory_catalog.services.universal_query import _coerce_filter_value, apply_universal_query, run_universal_query


class _Base(DeclarativeBase):
    pass


class _QueryTestModel(_Base):
    __tablename__ = "_uq_test_model"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    bool_col: Mapped[bool] = mapped_column(Boolean)
    int_col: Mapped[int] = mapped_column(Integer)
    float_col: Mapped[float] = mapped_column(Float)
    numeric_col: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    dt_col: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    uuid_col: Mapped[uuid.UUID] = mapped_column(PGUUID(as_uuid=True))
    text_col: Mapped[str] = mapped_column(String(50))


class _ApplyBase(DeclarativeBase):
    pass


class _ApplyQueryModel(_ApplyBase):
    __tablename__ = "_uq_apply_test_model"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    key: Mapped[str] = mapped_column(String(50))
    company: Mapped[str] = mapped_column(String(50))
    display_order: Mapped[int] = mapped_column(Integer)


class UniversalQueryCoercionTests(unittest.TestCase):
    def test_boolean_accepts_portuguese_words(self):
        self.assertTrue(_coerce_filter_value(_QueryTestModel.bool_col, "sim"))
        self.assertTrue(_coerce_filter_value(_QueryTestModel.bool_col, "true"))
        self.assertFalse(_coerce_filter_value(_QueryTestModel.bool_col, "não"))
        self.assertFalse(_coerce_filter_value(_QueryTestModel.bool_col, "0"))

    def test_boolean_invalid_value_raises_400(self):
        with self.assertRaises(HTTPException) as ctx:
            _coerce_filter_value(_QueryTestModel.bool_col, "talvez")
        self.assertEqual(ctx.exception.status_code, 400)

    def test_numbers_accept_comma_decimals(self):
        self.assertEqual(_coerce_filter_value(_QueryTestModel.int_col, "42"), 42)
        self.assertAlmostEqual(_coerce_filter_value(_QueryTestModel.float_col, "3,14"), 3.14)
        self.assertEqual(_coerce_filter_value(_QueryTestModel.numeric_col, "99,50"), Decimal("99.50"))
        with self.assertRaises(HTTPException):
            _coerce_filter_value(_QueryTestModel.int_col, "dez")

    def test_datetime_date_only_is_utc_midnight(self):
        value = _coerce_filter_value(_QueryTestModel.dt_col, "2026-10-18")
        self.assertEqual(value.date(), date(2026, 10, 18))
        self.assertEqual(value.tzinfo, timezone.utc)

    def test_uuid_values(self):
        uid = uuid.uuid4()
        self.assertEqual(_coerce_filter_value(_QueryTestModel.uuid_col, str(uid)), uid)
        with self.assertRaises(HTTPException) as ctx:
            _coerce_filter_value(_QueryTestModel.uuid_col, "not-a-uuid")
        self.assertEqual(ctx.exception.status_code, 400)

    def test_text_is_left_as_is(self):
        self.assertEqual(_coerce_filter_value(_QueryTestModel.text_col, "abc"), "abc")


class UniversalQueryApplyTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.engine = create_engine("sqlite+pysqlite:///:memory:")
        _ApplyBase.metadata.create_all(cls.engine)
        with Session(cls.engine) as session:
            session.add_all(
                [
                    _ApplyQueryModel(id=1, key="garantia", company="a", display_order=3),
                    _ApplyQueryModel(id=2, key="lacre", company="a", display_order=1),
                    _ApplyQueryModel(id=3, key="garantia_estendida", company="b", display_order=2),
                ]
            )
            session.commit()

    @classmethod
    def tearDownClass(cls):
        cls.engine.dispose()

    def test_filters_and_sort(self):
        with Session(self.engine) as session:
            uq = UniversalQuery(
                filters=[FilterClause(field="display_order", op=">=", value="2")],
                sort=[SortClause(field="display_order", dir="desc")],
            )
            rows = apply_universal_query(session.query(_ApplyQueryModel), _ApplyQueryModel, uq).all()
        self.assertEqual([row.id for row in rows], [1, 3])

    def test_hidden_and_unknown_columns_are_ignored(self):
        with Session(self.engine) as session:
            uq = UniversalQuery(
                filters=[
                    FilterClause(field="company", op="=", value="b"),
                    FilterClause(field="missing", op="=", value="x"),
                ],
                sort=[SortClause(field="company")],
            )
            rows = apply_universal_query(
                session.query(_ApplyQueryModel), _ApplyQueryModel, uq, hidden={"company"}
            ).all()
        self.assertEqual(len(rows), 3)

    def test_run_returns_page_and_total(self):
        with Session(self.engine) as session:
            uq = UniversalQuery(
                filters=[FilterClause(field="key", op="~", value="garantia")],
                sort=[SortClause(field="id")],
                page=Page(limit=1, offset=1),
            )
            rows, total = run_universal_query(session.query(_ApplyQueryModel), _ApplyQueryModel, uq)
        self.assertEqual(total, 2)
        self.assertEqual([row.id for row in rows], [3])
