import uuid

from sqlalchemy import Boolean, ForeignKey, Integer, JSON, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from inventory_catalog.db.session import Base
from inventory_catalog.models.common import UUIDMixin, TimestampMixin, ResponsibleMixin, TenantMixin


class Product(Base, UUIDMixin, TimestampMixin, ResponsibleMixin, TenantMixin):
    __tablename__ = "products"

    category_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    sku: Mapped[str | None] = mapped_column(String(80), nullable=True, index=True)
    specs: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    # Prices are integer cents.
    price_retail: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_wholesale: Mapped[int | None] = mapped_column(Integer, nullable=True)
    price_reseller: Mapped[int | None] = mapped_column(Integer, nullable=True)
    discount_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
