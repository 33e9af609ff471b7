from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_catalog.db.session import Base
from inventory_catalog.models.common import UUIDMixin, TimestampMixin, ResponsibleMixin, TenantMixin


class Customer(Base, UUIDMixin, TimestampMixin, ResponsibleMixin, TenantMixin):
    __tablename__ = "customers"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(200), nullable=True, index=True)
    customer_type: Mapped[str] = mapped_column(String(20), nullable=False, default="retail")
    admin_preview_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
