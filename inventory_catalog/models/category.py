from sqlalchemy import String, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_catalog.db.session import Base
from inventory_catalog.models.common import UUIDMixin, TimestampMixin, ResponsibleMixin, TenantMixin


class Category(Base, UUIDMixin, TimestampMixin, ResponsibleMixin, TenantMixin):
    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint(
            "company_id",
            "slug",
            name="uq_categories_company_slug",
        ),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(200), nullable=False)
    # Built-in requirements, custom_fields entries and auto-name settings.
    config: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
