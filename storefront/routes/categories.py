# storefront/routes/categories.py
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from storefront.database import get_db
from storefront.errors import Conflict, NotFound, ValidationFailed
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.users import User
from storefront.routes.products import serialize_product
from storefront.schemas import category as category_schemas
from storefront.schemas import product as product_schemas
from storefront.schemas.common import MessageResponse
from storefront.services.gate import admin_only, authenticated
from storefront.services.images import ImageAssetManager, get_image_manager
from storefront.utils.audit import client_ip, write_log

router = APIRouter(prefix="/categories", tags=["Categories"])


def _serialize(category: Category, images: ImageAssetManager) -> product_schemas.CategoryWithProducts:
    base = category_schemas.CategoryOut.model_validate(category).model_dump()
    products = [serialize_product(p, images, with_category=False) for p in category.products]
    return product_schemas.CategoryWithProducts(**base, products=products)


def category_name_taken(db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Category).filter(func.lower(Category.category_name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    return db.query(query.exists()).scalar()


def _get_category_or_404(db: Session, category_id: int) -> Category:
    category = (
        db.query(Category)
        .options(selectinload(Category.products))
        .filter(Category.id == category_id)
        .first()
    )
    if not category:
        raise NotFound("Category not found")
    return category


# List all categories with their products
@router.get("", response_model=product_schemas.CategoryListResponse)
def list_categories(
    db: Session = Depends(get_db),
    images: ImageAssetManager = Depends(get_image_manager),
    current_user: User = Depends(authenticated),
):
    categories = db.query(Category).options(selectinload(Category.products)).order_by(Category.id.asc()).all()
    return {"data": [_serialize(c, images) for c in categories]}


@router.get("/{category_id}", response_model=product_schemas.CategoryDetailResponse)
def get_category(
    category_id: int,
    db: Session = Depends(get_db),
    images: ImageAssetManager = Depends(get_image_manager),
    current_user: User = Depends(authenticated),
):
    return {"data": _serialize(_get_category_or_404(db, category_id), images)}


@router.post("", response_model=category_schemas.CategorySaved, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: category_schemas.CategoryIn,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    if category_name_taken(db, payload.category_name):
        raise ValidationFailed.field("category_name", "The category name has already been taken.")

    category = Category(category_name=payload.category_name)
    db.add(category)
    db.commit()
    db.refresh(category)

    write_log(db, user_id=current_user.id, action="CATEGORY_CREATE", resource="categories",
              ip=client_ip(request), meta={"id": category.id})

    return {"message": "Category created successfully", "category": category}


@router.put("/{category_id}", response_model=category_schemas.CategorySaved)
def update_category(
    category_id: int,
    payload: category_schemas.CategoryIn,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    category = _get_category_or_404(db, category_id)
    if category_name_taken(db, payload.category_name, exclude_id=category.id):
        raise ValidationFailed.field("category_name", "The category name has already been taken.")

    category.category_name = payload.category_name
    db.commit()
    db.refresh(category)

    write_log(db, user_id=current_user.id, action="CATEGORY_UPDATE", resource="categories",
              ip=client_ip(request), meta={"id": category.id})

    return {"message": "Category updated successfully", "category": category}


# Categories that still hold products are not deleted; products are never cascaded
@router.delete("/{category_id}", response_model=MessageResponse)
def delete_category(
    category_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    category = _get_category_or_404(db, category_id)

    remaining = db.query(Product).filter(Product.category_id == category.id).count()
    if remaining:
        raise Conflict(f"Category still has {remaining} product(s); move or delete them first.")

    db.delete(category)
    db.commit()

    write_log(db, user_id=current_user.id, action="CATEGORY_DELETE", resource="categories",
              ip=client_ip(request), meta={"id": category_id})

    return {"message": "Category deleted successfully"}
