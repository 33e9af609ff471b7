from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_catalog.db.session import Base
from inventory_catalog.models.common import ResponsibleMixin, TimestampMixin, UUIDMixin


class TableAvailability(Base, UUIDMixin, TimestampMixin, ResponsibleMixin):
    """Lookup tables that table-relation fields are allowed to read."""

    __tablename__ = "table_availability"

    table_name: Mapped[str] = mapped_column(String(120), unique=True, index=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
