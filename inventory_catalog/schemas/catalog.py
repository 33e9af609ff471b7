from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ProductUpsert(BaseModel):
    name: str = ""
    sku: Optional[str] = None
    category_id: Optional[str] = None
    specs: dict = {}
    price_retail: int = Field(default=0, ge=0)
    price_wholesale: Optional[int] = Field(default=None, ge=0)
    price_reseller: Optional[int] = Field(default=None, ge=0)
    discount_percentage: int = Field(default=0, ge=0, le=100)
    is_active: bool = True

    @field_validator("sku")
    @classmethod
    def normalize_sku(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        normalized = str(value).strip().upper()
        return normalized or None


class PreviewTierIn(BaseModel):
    preview_type: Optional[str] = None

    @field_validator("preview_type")
    @classmethod
    def validate_preview_type(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        normalized = str(value).strip().lower()
        if normalized not in {"retail", "wholesale", "resale"}:
            raise ValueError("preview_type deve ser retail, wholesale ou resale")
        return normalized
