# storefront/schemas/product.py
from datetime import datetime
from typing import List, Optional

from storefront.models.product import ImageSource
from storefront.schemas.category import CategoryOut
from storefront.schemas.common import Envelope, ORMBase


# Full product representation; image_url is derived, never stored
class ProductOut(ORMBase):
    id: int
    product_name: str
    description: Optional[str] = None
    price: float
    in_stock: int
    image_source: Optional[ImageSource] = None
    image_path: Optional[str] = None
    image_url: Optional[str] = None
    category_id: int
    category: Optional[CategoryOut] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductListResponse(Envelope):
    data: List[ProductOut]


class ProductResponse(Envelope):
    data: ProductOut


class ProductSaved(Envelope):
    message: str
    product: ProductOut


# Category together with its products, as returned by the category endpoints
class CategoryWithProducts(CategoryOut):
    products: List[ProductOut] = []


class CategoryListResponse(Envelope):
    data: List[CategoryWithProducts]


class CategoryDetailResponse(Envelope):
    data: CategoryWithProducts
