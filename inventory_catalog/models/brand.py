from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_catalog.db.session import Base
from inventory_catalog.models.common import UUIDMixin, TimestampMixin, ResponsibleMixin, TenantMixin


class Brand(Base, UUIDMixin, TimestampMixin, ResponsibleMixin, TenantMixin):
    __tablename__ = "brands"

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
