from sqlalchemy import String, Boolean, Integer, JSON, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_catalog.db.session import Base
from inventory_catalog.models.common import UUIDMixin, TimestampMixin, ResponsibleMixin, TenantMixin


class FieldDefinition(Base, UUIDMixin, TimestampMixin, ResponsibleMixin, TenantMixin):
    __tablename__ = "field_definitions"
    __table_args__ = (
        UniqueConstraint(
            "company_id",
            "key",
            name="uq_field_definitions_company_key",
        ),
    )

    key: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False, default="spec")
    field_type: Mapped[str] = mapped_column(String(30), nullable=False, default="text")
    options: Mapped[list | None] = mapped_column(JSON, nullable=True)
    validation: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    placeholder: Mapped[str | None] = mapped_column(String(200), nullable=True)
    help_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    table_config: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    is_system: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, default=999, nullable=False)
