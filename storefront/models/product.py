# storefront/models/product.py
import enum
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, Enum, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import relationship
from storefront.database import Base


class ImageSource(str, enum.Enum):
    LOCAL = "local"
    EXTERNAL = "external"


@dataclass(frozen=True)
class ImageRef:
    """Reference to a product image.

    Exactly one of three shapes:
      - empty: no image at all,
      - local: ``path`` is a storage key owned by the application,
      - external: ``path`` is an absolute http(s) URL the application does not own.
    """

    source: Optional[ImageSource] = None
    path: Optional[str] = None

    def __post_init__(self):
        if (self.source is None) != (self.path is None):
            raise ValueError("ImageRef source and path must be set together")

    @classmethod
    def empty(cls) -> "ImageRef":
        return cls()

    @classmethod
    def local(cls, key: str) -> "ImageRef":
        return cls(ImageSource.LOCAL, key)

    @classmethod
    def external(cls, url: str) -> "ImageRef":
        return cls(ImageSource.EXTERNAL, url)

    @property
    def is_empty(self) -> bool:
        return self.source is None

    @property
    def is_local(self) -> bool:
        return self.source == ImageSource.LOCAL

    @property
    def is_external(self) -> bool:
        return self.source == ImageSource.EXTERNAL


# Model Product
# Catalogue entry belonging to a single category. The image is stored as a
# (source, path) pair so reads never have to guess what image_path holds.
class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint(
            "(image_source IS NULL AND image_path IS NULL) OR "
            "(image_source IS NOT NULL AND image_path IS NOT NULL)",
            name="ck_products_image_ref",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)

    price = Column(Numeric(10, 2), CheckConstraint("price >= 0"), nullable=False)
    in_stock = Column(Integer, CheckConstraint("in_stock >= 0"), nullable=False, default=0)

    image_source = Column(
        Enum(ImageSource, values_callable=lambda sources: [s.value for s in sources], name="image_source"),
        nullable=True,
    )
    image_path = Column(String(2048), nullable=True)

    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category = relationship("Category", back_populates="products")

    @property
    def image(self) -> ImageRef:
        if self.image_source is None:
            return ImageRef.empty()
        return ImageRef(ImageSource(self.image_source), self.image_path)

    @image.setter
    def image(self, ref: ImageRef) -> None:
        self.image_source = ref.source
        self.image_path = ref.path
