# storefront/schemas/category.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from storefront.schemas.common import Envelope, ORMBase


class CategoryIn(BaseModel):
    category_name: str = Field(..., min_length=1, max_length=255)

    @field_validator("category_name")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("The category name field is required.")
        return v


class CategoryOut(ORMBase):
    id: int
    category_name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryResponse(Envelope):
    data: CategoryOut


class CategorySaved(Envelope):
    message: str
    category: CategoryOut
