# storefront/routes/products.py
import logging
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from sqlalchemy.orm import Session, joinedload

from storefront.database import get_db
from storefront.errors import NotFound, ValidationFailed
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.users import User
from storefront.schemas import product as product_schemas
from storefront.schemas.category import CategoryOut
from storefront.schemas.common import MessageResponse
from storefront.services.gate import admin_only, authenticated, public
from storefront.services.images import ImageAssetManager, IncomingImage, get_image_manager
from storefront.utils.audit import client_ip, write_log

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])

# Column limits: price is Numeric(10, 2), in_stock a 32-bit integer
MAX_PRICE = 99999999.99
MAX_STOCK = 2**31 - 1


# ---- HELPERS ----
def serialize_product(p: Product, images: ImageAssetManager, with_category: bool = True) -> product_schemas.ProductOut:
    """image_url is recomputed from the stored reference on every read."""
    fields = list(product_schemas.ProductOut.model_fields.keys())
    data = {f: getattr(p, f) for f in fields if hasattr(p, f) and f != "category"}
    data["image_url"] = images.url_for(p.image)
    if with_category and p.category is not None:
        data["category"] = CategoryOut.model_validate(p.category)
    return product_schemas.ProductOut.model_validate(data)


def _get_product_or_404(db: Session, product_id: int) -> Product:
    product = (
        db.query(Product)
        .options(joinedload(Product.category))
        .filter(Product.id == product_id)
        .first()
    )
    if not product:
        raise NotFound("Product not found")
    return product


def _validate_fields(
    db: Session,
    images: ImageAssetManager,
    product_name: str,
    price: float,
    category_id: int,
    image: Optional[UploadFile],
    image_url: Optional[str],
) -> Optional[IncomingImage]:
    """Run every check before anything is written; all field errors are reported together."""
    errors: Dict[str, List[str]] = {}

    if not product_name.strip():
        errors["product_name"] = ["The product name field is required."]
    if not math.isfinite(price):
        errors["price"] = ["The price must be a number."]
    if db.query(Category.id).filter(Category.id == category_id).first() is None:
        errors["category_id"] = ["The selected category id is invalid."]

    incoming = None
    try:
        incoming = images.incoming(image, image_url)
    except ValidationFailed as e:
        errors.update(e.errors)

    if errors:
        raise ValidationFailed(errors)
    return incoming


def _money(price: float) -> Decimal:
    return Decimal(str(price)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# =========================
# PRODUCT LISTING (public)
# =========================
@router.get("", response_model=product_schemas.ProductListResponse)
def list_products(
    q: Optional[str] = Query(None, description="Search by product name"),
    category_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    images: ImageAssetManager = Depends(get_image_manager),
    current_user: Optional[User] = Depends(public),
):
    query = db.query(Product).options(joinedload(Product.category))
    if q:
        query = query.filter(Product.product_name.ilike(f"%{q.strip()}%"))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)

    items = query.order_by(Product.id.asc()).all()
    return {"data": [serialize_product(p, images) for p in items]}


@router.get("/{product_id}", response_model=product_schemas.ProductResponse)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    images: ImageAssetManager = Depends(get_image_manager),
    current_user: User = Depends(authenticated),
):
    return {"data": serialize_product(_get_product_or_404(db, product_id), images)}


# Create a product from multipart form data with an optional image file or external URL
@router.post("", response_model=product_schemas.ProductSaved, status_code=status.HTTP_201_CREATED)
def create_product(
    request: Request,
    product_name: str = Form(..., max_length=255),
    price: float = Form(..., ge=0, le=MAX_PRICE),
    in_stock: int = Form(..., ge=0, le=MAX_STOCK),
    category_id: int = Form(...),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    image_url: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    images: ImageAssetManager = Depends(get_image_manager),
    current_user: User = Depends(admin_only),
):
    incoming = _validate_fields(db, images, product_name, price, category_id, image, image_url)

    product = Product(
        product_name=product_name.strip(),
        description=description,
        price=_money(price),
        in_stock=in_stock,
        category_id=category_id,
    )
    db.add(product)
    images.save(db, product, incoming)

    write_log(db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
              ip=client_ip(request), meta={"id": product.id, "image": product.image.source.value if product.image.source else None})

    return {"message": "Product created successfully", "product": serialize_product(product, images)}


# Full update; the image only changes when a new file or URL is supplied
@router.put("/{product_id}", response_model=product_schemas.ProductSaved)
def update_product(
    product_id: int,
    request: Request,
    product_name: str = Form(..., max_length=255),
    price: float = Form(..., ge=0, le=MAX_PRICE),
    in_stock: int = Form(..., ge=0, le=MAX_STOCK),
    category_id: int = Form(...),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    image_url: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    images: ImageAssetManager = Depends(get_image_manager),
    current_user: User = Depends(admin_only),
):
    product = _get_product_or_404(db, product_id)
    incoming = _validate_fields(db, images, product_name, price, category_id, image, image_url)

    product.product_name = product_name.strip()
    product.description = description
    product.price = _money(price)
    product.in_stock = in_stock
    product.category_id = category_id
    images.save(db, product, incoming)

    write_log(db, user_id=current_user.id, action="PRODUCT_UPDATE", resource="products",
              ip=client_ip(request), meta={"id": product.id, "image_replaced": incoming is not None})

    return {"message": "Product updated successfully", "product": serialize_product(product, images)}


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    images: ImageAssetManager = Depends(get_image_manager),
    current_user: User = Depends(admin_only),
):
    product = _get_product_or_404(db, product_id)
    pid, pname = product.id, product.product_name
    images.delete(db, product)

    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
              ip=client_ip(request), meta={"id": pid})

    return {"message": f"Product '{pname}' deleted successfully"}
